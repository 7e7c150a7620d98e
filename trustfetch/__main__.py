# /trustfetch/__main__.py
from trustfetch.adapters.cli.main import run

run()
