"""
Guest Check-in System - Main Application

Entry point for running the guest list and entrance check-in tool with the
Flask development server. The administrator logs in, manages the guest
list, issues QR codes and badge cards, and admits guests by scanning their
codes at the entrance.

Environment:
- FLASK_ENV selects the configuration (development, testing, production)
- SUPABASE_URL / SUPABASE_ANON_KEY enable the remote guest store
"""

import os
import logging

from guestlist import create_app

app = create_app()
logger = logging.getLogger(__name__)

if __name__ == '__main__':
    port = int(os.environ.get('PORT', 5000))
    logger.info(f"Starting guest check-in server on port {port}")
    app.run(debug=app.config['DEBUG'], host='0.0.0.0', port=port)
