"""Navigator Vault Meta information.
   Navigator Vault keeps a user's credentials in a client-side encrypted vault
   and syncs it with a server that only ever stores ciphertext.
"""
__title__ = 'navigator_vault'
__description__ = (
   'Navigator Vault keeps user credentials encrypted on the client '
   'and syncs them with a blind opaque-blob server.'
)
__version__ = '0.3.0'
__copyright__ = 'Copyright (c) 2023 Jesus Lara'
__author__ = 'Jesus Lara'
__author_email__ = 'jesuslarag@gmail.com'
__license__ = 'Apache-2.0'
__url__ = 'https://github.com/phenobarbital/navigator-vault'
