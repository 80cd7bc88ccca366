# Overview: Shared Flask extensions. The SQL record adapter, the auth tables and
# the document counters all go through this one SQLAlchemy handle.

from flask_sqlalchemy import SQLAlchemy
from flask_migrate import Migrate

db = SQLAlchemy()
migrate = Migrate(compare_type=True)
