from kohakuipam.cli.main import run

run()
