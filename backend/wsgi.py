from bizbooks import create_app

app = create_app()
