from linepipe.cli import run

run()
