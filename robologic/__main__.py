from robologic.cli import run

run()
