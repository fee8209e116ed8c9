"""passwdm Meta information.
   passwdm keeps named credentials encrypted at rest behind a master password.
"""
__title__ = 'passwdm'
__description__ = (
   'passwdm keeps named credentials encrypted at rest '
   'behind a master password.'
)
__version__ = '0.3.0'
__copyright__ = 'Copyright (c) 2026 passwdm contributors'
__author__ = 'passwdm contributors'
__author_email__ = 'passwdm@users.noreply.github.com'
__license__ = 'Apache-2.0'
__url__ = 'https://github.com/passwdm/passwdm'
