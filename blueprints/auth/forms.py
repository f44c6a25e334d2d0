"""
Authentication forms using Flask-WTF.
Provides login and signup forms with CSRF protection.
"""

from flask_wtf import FlaskForm
from wtforms import StringField, PasswordField, BooleanField
from wtforms.validators import DataRequired, Length, EqualTo


class LoginForm(FlaskForm):
    """Login form with username and password."""

    username = StringField('Username', validators=[
        DataRequired(message='Username is required')
    ])

    password = PasswordField('Password', validators=[
        DataRequired(message='Password is required')
    ])

    remember_me = BooleanField('Remember me')


class SignupForm(FlaskForm):
    """Account registration form."""

    username = StringField('Username', validators=[
        DataRequired(message='Username is required'),
        Length(max=150)
    ])

    password = PasswordField('Password', validators=[
        DataRequired(message='Password is required')
    ])

    confirm_password = PasswordField('Confirm password', validators=[
        EqualTo('password', message='Passwords do not match')
    ])
