from product_service.app import main

main()
