import os
from app import create_app

# WSGI entry point: gunicorn main:app
app = create_app()


if __name__ == "__main__":
    app.run(host="0.0.0.0", port=int(os.environ.get("PORT", 8000)))
