from modmeta.cli import app

app()
