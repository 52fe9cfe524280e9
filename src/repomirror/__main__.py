from repomirror.cli import main

main()
