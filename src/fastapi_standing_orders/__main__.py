from fastapi_standing_orders.app import main

main()
