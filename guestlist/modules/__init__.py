# Guest Check-in System - Modules Package
"""
Core business logic modules for the Guest Check-in System.
"""

__version__ = "1.0.0"
__description__ = "Core modules for guest list and check-in functionality"

# Module descriptions
MODULES = {
    'models': 'Invitee record and guest types',
    'database_manager': 'Local SQLite key/value storage',
    'invitee_store': 'Local and remote guest list persistence',
    'invitee_manager': 'Guest list operations and search',
    'qr_generator': 'QR payload handling and image rendering',
    'scan_manager': 'Entrance scanner sessions and matching',
    'auth_manager': 'Administrator authentication',
    'card_generator': 'Badge card rendering and PDF export',
    'report_generator': 'Guest list export'
}


def get_module_info():
    """Get information about available modules"""
    return MODULES
