"""
Backend configuration, read from environment variables at import time.

    OTP_SECRET_KEY      Flask secret key
    OTP_MAX_WINDOW      largest verification window a request may ask for
    OTP_CORS_ORIGINS    origins allowed by CORS
    OTP_DEFAULT_ISSUER  issuer used by /otpauth_uri when none is given
"""

import os


class Config:
    SECRET_KEY = os.getenv('OTP_SECRET_KEY', 'otp_demo_secret_key')
    OTP_MAX_WINDOW = int(os.getenv('OTP_MAX_WINDOW', 10))
    OTP_CORS_ORIGINS = os.getenv('OTP_CORS_ORIGINS', '*')
    OTP_DEFAULT_ISSUER = os.getenv('OTP_DEFAULT_ISSUER', 'otp-tool')
