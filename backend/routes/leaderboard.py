from flask import Blueprint, jsonify, request, current_app
from services.core_services import LeaderboardService
from utils.constants import LEADERBOARD
from utils.role_required import role_required

leaderboard_bp = Blueprint('leaderboard_bp', __name__)


# GET public top players
@leaderboard_bp.route('/leaderboard/public', methods=['GET'])
def get_public_leaderboard():
    try:
        top_players = LeaderboardService.get_top_users(LEADERBOARD['public_limit'])
    except Exception:
        current_app.logger.exception("Error fetching leaderboard")
        return jsonify({"error": "Error fetching leaderboard"}), 500

    return jsonify([
        {
            "id": rank,
            "title": entry.user.name,
            "description": entry.user.role.value.capitalize() if entry.user.role else "Member",
            "avatar": entry.user.photo_url,
            "score": entry.total_points,
        } for rank, entry in enumerate(top_players, start=1)
    ]), 200


# ADMIN: full leaderboard
@leaderboard_bp.route('/admin/gamification/leaderboard', methods=['GET'])
@role_required("admin")
def get_admin_leaderboard():
    page = max(request.args.get('page', 1, type=int), 1)
    per_page = max(1, min(request.args.get('per_page', 20, type=int), 100))

    leaderboard = LeaderboardService.get_leaderboard_page(page=page, per_page=per_page)
    offset = (page - 1) * per_page

    return jsonify({
        "leaderboard": [
            {
                "rank": offset + index,
                "user_id": entry.user_id,
                "name": entry.user.name,
                "email": entry.user.email,
                "total_points": entry.total_points,
                "level": entry.level,
            } for index, entry in enumerate(leaderboard.items, start=1)
        ],
        "page": page,
        "total_pages": leaderboard.pages,
        "total_players": leaderboard.total
    }), 200
