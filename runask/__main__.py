from runask.cli import app

app()
