from .cli import app

app(prog_name="cosmos-gremlin-demo")
