from flask import Blueprint, current_app, jsonify

uploads = Blueprint('uploads', __name__)


@uploads.route('/config', methods=['GET'])
def upload_config():
    """Settings the browser needs for an unsigned upload straight to Cloudinary."""
    return jsonify({
        'cloud_name': current_app.config.get('CLOUDINARY_CLOUD_NAME'),
        'upload_preset': current_app.config.get('CLOUDINARY_UPLOAD_PRESET'),
    })
