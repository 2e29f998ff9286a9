from drive_simulator.cli import main

main()
