"""
User Model
Caller identities: students who take quizzes and admins who own them
"""
from examcore.extensions import db


class User(db.Model):
    """User model"""
    __tablename__ = 'user'

    ROLE_ADMIN = 'admin'
    ROLE_STUDENT = 'student'

    id = db.Column(db.Integer, primary_key=True)
    username = db.Column(db.String(100), unique=True, nullable=False)
    password = db.Column(db.String(255), nullable=False)
    role = db.Column(db.String(20), nullable=False, default=ROLE_STUDENT)

    @property
    def is_admin(self):
        return self.role == self.ROLE_ADMIN

    def __repr__(self):
        return f'<User {self.username} ({self.role})>'
