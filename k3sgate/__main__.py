from k3sgate.cli import run

run()
