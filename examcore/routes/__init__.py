"""
Routes Package
Exports all route blueprints
"""
from examcore.routes.auth import auth_bp
from examcore.routes.admin import admin_bp
from examcore.routes.student import student_bp

__all__ = ['auth_bp', 'admin_bp', 'student_bp']
