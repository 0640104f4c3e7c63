from tradeview.main import main

main()
