from edgevisor.main import run

run()
