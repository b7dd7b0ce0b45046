"""Diary Vault Meta information.
   Diary Vault protects private journal entries with password-derived keys.
"""
__title__ = 'diary_vault'
__description__ = (
   'Diary Vault protects private journal entries with '
   'password-derived keys.'
)
__version__ = '0.3.0'
__copyright__ = 'Copyright (c) 2024 Founder Diary'
__author__ = 'Founder Diary'
__author_email__ = 'dev@founderdiary.app'
__license__ = 'Apache-2.0'
__url__ = 'https://github.com/founder-diary/diary-vault'
