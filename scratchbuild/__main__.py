from scratchbuild.cli import app

app()
