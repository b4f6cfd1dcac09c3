from rental_contracts.cli.main import app

app()
