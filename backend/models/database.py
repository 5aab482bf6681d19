from flask_sqlalchemy import SQLAlchemy
from config import logger

db = SQLAlchemy()

def init_db(app):
    db.init_app(app)
    with app.app_context():
        # Import models here so SQLAlchemy knows about them
        from models.user import User, TokenBlocklist
        from models.cohort import Cohort
        from models.cohort_access import CohortAccess
        from models.student import Student

        try:
            db.create_all()
            logger.info("Database schema synchronized successfully.")
        except Exception as e:
            logger.error(f"Error during database synchronization: {e}")
            raise e
