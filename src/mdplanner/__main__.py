from mdplanner.main import main

main()
