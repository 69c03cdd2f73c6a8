from callchain.cli import main

main()
