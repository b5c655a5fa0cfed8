from namespacerbacoperator.cli import main

main()
