from flask_sqlalchemy import SQLAlchemy
from flask_migrate import Migrate
from flask_bcrypt import Bcrypt
from flask_login import LoginManager

db = SQLAlchemy()
migrate = Migrate(compare_type=True)
bcrypt = Bcrypt()

# The API is token based; Flask-Login only backs UserMixin and the JSON 401
login_manager = LoginManager()
login_manager.session_protection = 'strong'
