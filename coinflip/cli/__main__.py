from coinflip.cli import main

main()
