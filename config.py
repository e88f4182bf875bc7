import os
from dotenv import load_dotenv


load_dotenv()

class Config:
    """ This class contains the database, Flask and marketplace rule configuration. """
    SQLALCHEMY_DATABASE_URI = os.getenv('SQLALCHEMY_DATABASE_URI', 'sqlite:///rentals.db')
    SQLALCHEMY_ECHO = os.getenv('SQLALCHEMY_ECHO', 'False') == 'True'
    SECRET_KEY = os.getenv('SECRET_KEY')
    JWT_SECRET_KEY = os.getenv('JWT_SECRET_KEY') or SECRET_KEY
    JWT_ACCESS_TOKEN_HOURS = int(os.getenv('JWT_ACCESS_TOKEN_HOURS', '2'))
    DEBUG = os.getenv('DEBUG', 'False') == 'True'
    LOG_LEVEL = os.getenv('LOG_LEVEL', 'INFO').upper()
    ALLOWED_ORIGINS = os.getenv('ALLOWED_ORIGINS', 'http://localhost:5173').split(',')

    # Credentials
    BCRYPT_ROUNDS = int(os.getenv('BCRYPT_ROUNDS', '10'))
    OTP_LENGTH = int(os.getenv('OTP_LENGTH', '6'))
    OTP_TTL_MINUTES = int(os.getenv('OTP_TTL_MINUTES', '10'))
    PASSWORD_RESET_TTL_MINUTES = int(os.getenv('PASSWORD_RESET_TTL_MINUTES', '30'))

    # Marketplace defaults
    DEFAULT_CURRENCY = os.getenv('DEFAULT_CURRENCY', 'INR').upper()
    DEFAULT_COUNTRY = os.getenv('DEFAULT_COUNTRY', 'India')
    DEFAULT_AVATAR_URL = os.getenv(
        'DEFAULT_AVATAR_URL',
        'https://res.cloudinary.com/demo/image/upload/default-avatar.png'
    )
    PLATFORM_COMMISSION_PERCENT = float(os.getenv('PLATFORM_COMMISSION_PERCENT', '10'))
