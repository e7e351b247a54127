import os
from quantify import create_app, db
from quantify.models import User
from quantify.utils.security import ROLE_ADMIN


def create_initial_data(app):
    """Seed the first administrator account"""
    email = os.getenv('ADMIN_EMAIL', 'admin@quantify.local')
    password = os.getenv('ADMIN_PASSWORD', 'Admin@12345')

    with app.app_context():
        admin = User.query.filter_by(email=email).first()
        if not admin:
            admin = User(
                name='Platform Administrator Account',
                email=email,
                role=ROLE_ADMIN
            )
            admin.set_password(password)  # Change this in production!
            db.session.add(admin)
            db.session.commit()
            print(f"Created admin user: {email}")


if __name__ == '__main__':
    env = os.getenv('FLASK_ENV', 'development')

    app = create_app(env)
    create_initial_data(app)

    print(f"Starting Quantify API in {env} mode...")
    print("Visit http://localhost:5000/health to check the service")

    if env == 'development':
        app.run(debug=True, host='0.0.0.0', port=5000)
    else:
        # In production, don't use Flask's development server
        print("Production mode - use a production WSGI server like Gunicorn")
        app.run(debug=False, host='0.0.0.0', port=5000)
