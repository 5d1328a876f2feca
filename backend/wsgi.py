from moncoeur import create_app

app = create_app()
