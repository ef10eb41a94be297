from proctree.app import run

run()
