"""Run the maestro-watch command line tool."""

from maestro_watch.tool.maestro_watch import main

main()
