from car_repair.workers.runner import main

main()
