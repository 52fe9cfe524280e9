"""Prompt documents for repository analysis and migration.

Every function here is pure: identical inputs produce byte-identical output.
"""

from __future__ import annotations

from dataclasses import dataclass

from repomirror.exceptions import InvalidArgumentError

SCRATCH_DIR_NAME = ".repomirror"
SOURCE_ANALYSIS_REPORT = f"{SCRATCH_DIR_NAME}/source-analysis.md"
TARGET_ANALYSIS_REPORT = f"{SCRATCH_DIR_NAME}/target-analysis.md"
MIGRATION_LOG = f"{SCRATCH_DIR_NAME}/migration-log.md"
PLAN_REFERENCE = "@IMPLEMENTATION_PLAN.md"


@dataclass(frozen=True)
class PromptContext:
    """Inputs for the migration prompt.

    Attributes:
        source_repo: Path of the repository being migrated from.
        target_repo: Path of the repository being migrated into.
        instructions: Free-text migration instructions.
        implementation_plan: Current plan text, if a plan file exists.
    """

    source_repo: str
    target_repo: str
    instructions: str
    implementation_plan: str | None = None


def _require(value: str, field: str) -> None:
    if not value or not value.strip():
        raise InvalidArgumentError(f"{field} is required")


def compile_source_analysis(source_path: str) -> str:
    """Build the prompt asking the agent to analyze the source repository.

    Args:
        source_path: Path of the source repository.

    Returns:
        Complete prompt document.
    """
    _require(source_path, "source_path")

    parts = [
        "# Source Repository Analysis",
        "",
        "You are tasked with analyzing the SOURCE repository to understand its structure, "
        "interfaces, and information flow.",
        "",
        f"**Repository Path:** {source_path}",
        "",
        "## Instructions:",
        "- Review everything in the source repository using as many subagents as possible",
        "- Focus on understanding:",
        "  - The public interfaces",
        "  - How information flows through the system",
        "  - Architecture and design patterns",
        "  - Key files and their purposes",
        "",
        "## For each important file/component, provide:",
        "- File path and line numbers",
        "- How it's used in the system",
        "- Dependencies and relationships",
        "- Public interfaces it exposes",
        "",
        "## Output Format:",
        "Return a comprehensive analysis as markdown that includes:",
        "1. **Repository Overview** - high-level architecture",
        "2. **Public Interfaces** - APIs, exports, entry points",
        "3. **Information Flow** - how data moves through the system",
        "4. **Key Files** - important files with their purposes",
        "5. **Dependencies** - external and internal dependencies",
        "6. **Patterns** - design patterns and conventions used",
        "",
        f"Write the analysis to {SOURCE_ANALYSIS_REPORT}",
    ]
    return "\n".join(parts) + "\n"


def compile_target_analysis(target_repo: str) -> str:
    """Build the prompt asking the agent to analyze the target repository.

    Args:
        target_repo: Path of the target repository.

    Returns:
        Complete prompt document.
    """
    _require(target_repo, "target_repo")

    parts = [
        "# Target Repository Analysis",
        "",
        "You are tasked with analyzing the TARGET repository to understand its current state "
        "and structure.",
        "",
        f"**Repository Path:** {target_repo}",
        "",
        "## Instructions:",
        "- Review everything in the target repository using as many subagents as possible",
        "- Focus on understanding:",
        "  - Current architecture and structure",
        "  - Existing patterns and conventions",
        "  - Build system and configuration",
        "  - Testing setup",
        "",
        "## For each important file/component, provide:",
        "- File path and line numbers",
        "- Current implementation details",
        "- Build/test configuration",
        "- Existing patterns to follow",
        "",
        "## Output Format:",
        "Return a comprehensive analysis as markdown that includes:",
        "1. **Repository Overview** - current state and structure",
        "2. **Architecture** - how the project is organized",
        "3. **Build System** - how to build and test",
        "4. **Patterns** - existing conventions to follow",
        "5. **Configuration** - important config files",
        "6. **Entry Points** - main files and scripts",
        "",
        f"Write the analysis to {TARGET_ANALYSIS_REPORT}",
    ]
    return "\n".join(parts) + "\n"


def compile_migration(
    source_repo: str,
    target_repo: str,
    instructions: str,
    implementation_plan: str | None = None,
) -> str:
    """Build the migration prompt handed to the execution agent.

    Args:
        source_repo: Path of the source repository.
        target_repo: Path of the target repository.
        instructions: Free-text migration instructions.
        implementation_plan: Plan text to embed. When None, the prompt refers
            the agent to the plan file instead.

    Returns:
        Complete prompt document.
    """
    return compile_migration_from_context(
        PromptContext(
            source_repo=source_repo,
            target_repo=target_repo,
            instructions=instructions,
            implementation_plan=implementation_plan,
        )
    )


def compile_migration_from_context(context: PromptContext) -> str:
    """Build the migration prompt from a PromptContext."""
    _require(context.source_repo, "source_repo")
    _require(context.target_repo, "target_repo")
    _require(context.instructions, "instructions")

    plan = context.implementation_plan
    if plan is None or not plan.strip():
        plan = PLAN_REFERENCE

    parts = [
        "# Repository Migration Implementation",
        "",
        "You are tasked with implementing a migration from the SOURCE repository to the "
        "TARGET repository.",
        "",
        f"**Source Repository:** {context.source_repo}",
        f"**Target Repository:** {context.target_repo}",
        "",
        "## Migration Instructions:",
        context.instructions.strip(),
        "",
        "## Available Context:",
        f"- Source Analysis: {SOURCE_ANALYSIS_REPORT}",
        f"- Target Analysis: {TARGET_ANALYSIS_REPORT}",
        f"- Implementation Plan: {plan}",
        "",
        "## Rules:",
        "- NEVER CHANGE THE SOURCE REPO, ONLY THE TARGET REPO",
        f"- Pick the highest priority item from {PLAN_REFERENCE} and implement it",
        "- Follow the migration instructions precisely",
        "- Ensure tests and checks pass in the target repo",
        f"- Update {PLAN_REFERENCE} with your progress",
        "- Commit changes to the target repo with descriptive messages",
        "",
        "## Workflow:",
        "1. Review the source and target analyses",
        "2. Identify the highest priority item from the implementation plan",
        "3. Implement the migration according to the instructions",
        "4. Run tests and ensure they pass",
        "5. Update the implementation plan",
        "6. Commit the changes",
        "",
        "## Output:",
        "- All work should be done in the target repository",
        f"- Write progress notes to {MIGRATION_LOG}",
        f"- Update {PLAN_REFERENCE} with completed items",
        "- Commit with a descriptive message about what was implemented",
    ]
    return "\n".join(parts) + "\n"
