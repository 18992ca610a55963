from context7_mcp.cli import main

main()
