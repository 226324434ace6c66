from bookfacts.cli import app

app(prog_name="bookfacts")
