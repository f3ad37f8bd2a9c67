# app.py – thin bootstrap, all logic lives in webapp package

import os

from dotenv import load_dotenv

# Load .env BEFORE importing/creating the Flask app; config reads os.environ at import
load_dotenv()

from webapp import create_app  # noqa: E402

# This is the app object Flask / gunicorn sees (`gunicorn app:app`)
app = create_app()

if __name__ == "__main__":
    app.run(debug=os.getenv("FLASK_DEBUG", "1") == "1", port=int(os.getenv("PORT", "5001")))
