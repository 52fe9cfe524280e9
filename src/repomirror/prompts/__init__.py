"""Prompt compiler - instruction documents for the execution agent."""

from repomirror.prompts.compiler import (
    MIGRATION_LOG,
    PLAN_REFERENCE,
    SOURCE_ANALYSIS_REPORT,
    TARGET_ANALYSIS_REPORT,
    PromptContext,
    compile_migration,
    compile_migration_from_context,
    compile_source_analysis,
    compile_target_analysis,
)

__all__ = [
    "MIGRATION_LOG",
    "PLAN_REFERENCE",
    "SOURCE_ANALYSIS_REPORT",
    "TARGET_ANALYSIS_REPORT",
    "PromptContext",
    "compile_migration",
    "compile_migration_from_context",
    "compile_source_analysis",
    "compile_target_analysis",
]
