from flask import Blueprint, jsonify, current_app, send_from_directory, abort
from models import Certificate
from utils.role_required import user_required, load_current_user

certificates_bp = Blueprint('certificates_bp', __name__)


@certificates_bp.route('/user/certificates', methods=['GET'])
@user_required
def get_my_certificates():
    user = load_current_user()
    certificates = (
        Certificate.query.filter_by(user_id=user.id)
        .order_by(Certificate.issued_at.desc(), Certificate.id.desc())
        .all()
    )
    return jsonify([c.to_dict() for c in certificates]), 200


@certificates_bp.route('/certificates/<string:code>.pdf', methods=['GET'])
def download_certificate(code):
    # Only codes that were actually issued are served
    certificate = Certificate.query.filter_by(certificate_code=code).first()
    if not certificate:
        abort(404)
    return send_from_directory(
        current_app.config["CERTIFICATE_FOLDER"],
        f"{certificate.certificate_code}.pdf",
        mimetype="application/pdf"
    )
