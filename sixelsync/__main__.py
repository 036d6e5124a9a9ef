from sixelsync.cli import run

run()
