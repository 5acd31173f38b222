from autowire.cli import app

app(prog_name="autowire")
