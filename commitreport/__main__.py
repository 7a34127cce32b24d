"""python -m commitreport"""

from commitreport.cli import main

main(prog_name="commitreport")
