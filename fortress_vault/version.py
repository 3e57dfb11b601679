"""FortressVault Meta information.
   FortressVault keeps credential records in a single container sealed
   with one master password.
"""
__title__ = 'fortress_vault'
__description__ = (
   'FortressVault keeps credential records in a single '
   'password-sealed, tamper-evident container.'
)
__version__ = '0.1.0'
__license__ = 'Apache-2.0'
