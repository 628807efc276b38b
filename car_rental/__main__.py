import os

from .app import create_app

# ======================== RUN APP ========================
if __name__ == "__main__":
    create_app().run(debug=True, port=int(os.getenv("PORT", 5000)))
