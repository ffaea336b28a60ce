from stockly import create_app

app = create_app()
