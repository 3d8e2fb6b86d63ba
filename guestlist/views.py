"""
Views - Guest Check-in System

HTTP routes for the administrator screens and the scanner API. Every route
on the main blueprint sits behind one session gate; only the login pages
are public.
"""

import io
import logging

from flask import (Blueprint, abort, current_app, flash, jsonify, redirect,
                   render_template, request, send_file, session, url_for)
from werkzeug.exceptions import HTTPException

from guestlist.modules.auth_manager import SESSION_KEY
from guestlist.modules.card_generator import card_filename
from guestlist.modules.models import GuestType

logger = logging.getLogger(__name__)

auth_bp = Blueprint('auth', __name__)
main_bp = Blueprint('main', __name__)

SCAN_SESSION_KEY = 'scan_session_id'

ERROR_STATUS = {
    'validation_error': 400,
    'not_found': 404,
    'already_admitted': 409,
    'no_match': 409,
    'system_error': 500
}


def components():
    return current_app.extensions['guestlist']


def error_status(result):
    return ERROR_STATUS.get(result.get('error_type'), 400)


def _serialize_result(result):
    data = {key: value for key, value in result.items() if key not in ('invitee', 'invitees')}
    if result.get('invitee') is not None:
        data['invitee'] = result['invitee'].to_dict()
    return data


@main_bp.before_request
def require_login():
    """Session gate evaluated on entry to every protected view."""
    if components()['auth_manager'].is_authenticated(session):
        return None

    if request.path.startswith('/api/'):
        return jsonify({'success': False, 'message': 'Authentication required'}), 401

    flash('Please log in to access this page.', 'error')
    return redirect(url_for('auth.login'))


# ---------- Authentication ----------

@auth_bp.route('/')
def index():
    if components()['auth_manager'].is_authenticated(session):
        return redirect(url_for('main.dashboard'))
    return redirect(url_for('auth.login'))


@auth_bp.route('/login', methods=['GET', 'POST'])
def login():
    """Administrator login page"""
    auth_manager = components()['auth_manager']

    if auth_manager.is_authenticated(session):
        return redirect(url_for('main.dashboard'))

    if request.method == 'POST':
        username = request.form.get('username', '')
        password = request.form.get('password', '')

        if auth_manager.login(session, username, password):
            logger.info(f"User {username} logged in successfully")
            return redirect(url_for('main.dashboard'))

        flash('Invalid username or password.', 'error')
        return render_template('login.html', username=username), 401

    return render_template('login.html', username='')


@auth_bp.route('/logout')
def logout():
    """Administrator logout"""
    components()['scan_manager'].close_session(session.pop(SCAN_SESSION_KEY, None))
    username = components()['auth_manager'].logout(session)
    session.clear()

    if username:
        logger.info(f"User {username} logged out")
    flash('You have been logged out successfully.', 'success')
    return redirect(url_for('auth.login'))


# ---------- Dashboard ----------

@main_bp.route('/dashboard')
def dashboard():
    """Guest list with search and add form"""
    invitee_manager = components()['invitee_manager']

    query = request.args.get('q', '')
    national_id = request.args.get('national_id', '')

    invitees = invitee_manager.list_invitees()
    results = invitee_manager.search(invitees, query, national_id)

    qr_generator = components()['qr_generator']
    qr_images = {
        invitee.id: qr_generator.generate_base64(invitee.qr_payload)
        for invitee in results if invitee.has_qr
    }

    return render_template(
        'dashboard.html',
        invitees=results,
        qr_images=qr_images,
        stats=invitee_manager.get_statistics(invitees),
        query=query,
        national_id=national_id,
        guest_types=[guest_type.value for guest_type in GuestType],
        user=session.get(SESSION_KEY)
    )


@main_bp.route('/invitees', methods=['POST'])
def add_invitee():
    result = components()['invitee_manager'].add_invitee(
        request.form.get('full_name', ''),
        request.form.get('guest_type', GuestType.INVITED.value),
        request.form.get('national_id')
    )

    if result['success']:
        flash(result['message'], 'success')
    else:
        flash(result['error'], 'error')
    return redirect(url_for('main.dashboard'))


@main_bp.route('/invitees/<invitee_id>/qr', methods=['POST'])
def generate_qr(invitee_id):
    result = components()['invitee_manager'].generate_qr(invitee_id)

    if result['success']:
        flash(f"QR code generated for {result['invitee'].full_name}", 'success')
    else:
        flash(result['error'], 'error')
    return redirect(url_for('main.dashboard'))


@main_bp.route('/invitees/<invitee_id>/admit', methods=['POST'])
def admit_invitee(invitee_id):
    result = components()['invitee_manager'].mark_admitted(invitee_id)

    if result['success']:
        flash(result['message'], 'success')
    else:
        flash(result['error'], 'error')
    return redirect(url_for('main.dashboard'))


@main_bp.route('/invitees/<invitee_id>/qr.png')
def invitee_qr_image(invitee_id):
    invitee = components()['invitee_manager'].get_invitee(invitee_id)
    if not invitee:
        abort(404)

    png = components()['qr_generator'].generate_png(invitee.effective_qr_payload())
    return send_file(io.BytesIO(png), mimetype='image/png')


@main_bp.route('/api/invitees')
def api_invitees():
    invitee_manager = components()['invitee_manager']
    invitees = invitee_manager.list_invitees()
    results = invitee_manager.search(
        invitees,
        request.args.get('q', ''),
        request.args.get('national_id', '')
    )

    return jsonify({
        'success': True,
        'invitees': [invitee.to_dict() for invitee in results],
        'stats': invitee_manager.get_statistics(invitees)
    })


# ---------- Scanner ----------

@main_bp.route('/scanner')
def scanner():
    """Entrance scanner. Opening the page takes a fresh guest list snapshot."""
    scan_session = components()['scan_manager'].open_session()
    session[SCAN_SESSION_KEY] = scan_session.session_id

    return render_template('scanner.html', user=session.get(SESSION_KEY))


def _current_scan_session():
    scan_manager = components()['scan_manager']
    scan_session = scan_manager.get_session(session.get(SCAN_SESSION_KEY))
    if scan_session is None:
        scan_session = scan_manager.open_session()
        session[SCAN_SESSION_KEY] = scan_session.session_id
    return scan_session


@main_bp.route('/api/scan', methods=['POST'])
def process_scan():
    """Match a decoded QR payload against the scanner snapshot"""
    data = request.get_json(silent=True) or {}
    payload = data.get('payload')

    if payload is None or payload == '':
        return jsonify({'success': False, 'message': 'No QR code data provided'}), 400

    result = _current_scan_session().process_scan(payload)
    return jsonify({'success': result.matched, **result.to_dict()})


@main_bp.route('/api/scan/confirm', methods=['POST'])
def confirm_scan():
    """Admit the guest matched by the last scan"""
    result = _current_scan_session().confirm_admission()

    if result['success']:
        return jsonify(_serialize_result(result))
    return jsonify(_serialize_result(result)), error_status(result)


# ---------- Cards ----------

@main_bp.route('/cards')
def cards():
    invitees = components()['invitee_manager'].list_invitees()
    return render_template('cards.html', invitees=invitees, user=session.get(SESSION_KEY))


def _invitee_or_404(invitee_id):
    invitee = components()['invitee_manager'].get_invitee(invitee_id)
    if not invitee:
        abort(404)
    return invitee


@main_bp.route('/cards/<invitee_id>.png')
def card_png(invitee_id):
    invitee = _invitee_or_404(invitee_id)
    png = components()['card_generator'].render_png(invitee)
    return send_file(io.BytesIO(png), mimetype='image/png',
                     as_attachment=request.args.get('download') == '1',
                     download_name=card_filename(invitee, 'png'))


@main_bp.route('/cards/<invitee_id>.pdf')
def card_pdf(invitee_id):
    invitee = _invitee_or_404(invitee_id)
    pdf = components()['card_generator'].render_pdf(invitee)
    return send_file(io.BytesIO(pdf), mimetype='application/pdf',
                     as_attachment=True, download_name=card_filename(invitee, 'pdf'))


@main_bp.route('/cards.pdf')
def cards_sheet_pdf():
    invitees = components()['invitee_manager'].list_invitees()
    pdf = components()['card_generator'].render_sheet_pdf(invitees)
    return send_file(io.BytesIO(pdf), mimetype='application/pdf',
                     as_attachment=True, download_name='guest_cards.pdf')


# ---------- Export ----------

@main_bp.route('/export/guests.<output_format>')
def export_guests(output_format):
    invitees = components()['invitee_manager'].list_invitees()
    result = components()['report_generator'].export_guest_list(invitees, output_format)

    if not result['success']:
        if result['error_type'] == 'validation_error':
            abort(404)
        flash('Export failed, please try again.', 'error')
        return redirect(url_for('main.dashboard'))

    return send_file(io.BytesIO(result['content']), mimetype=result['mimetype'],
                     as_attachment=True, download_name=result['filename'])


def register_error_handlers(app):
    @app.errorhandler(HTTPException)
    def handle_http_error(error):
        if request.path.startswith('/api/'):
            return jsonify({'success': False, 'message': error.description}), error.code
        return error
