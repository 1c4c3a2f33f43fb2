# extensions.py
"""Flask extensions shared by blueprints, bound to the app in create_app()."""
from flask_bcrypt import Bcrypt
from flask_jwt_extended import JWTManager

bcrypt = Bcrypt()
jwt = JWTManager()
