from tamales.main import create_app

# WSGI entry point for gunicorn
app = create_app()

if __name__ == "__main__":
    app.run(host="127.0.0.1", port=5001, debug=True)
