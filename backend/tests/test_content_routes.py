"""
Tests for the e-book and video library
"""
from models import db, ContentFolder, FolderTypeEnum, Ebook, Video, GamificationProfile


def _folder(name, folder_type):
    folder = ContentFolder(name=name, type=folder_type)
    db.session.add(folder)
    db.session.commit()
    return folder


class TestLibraryBrowsing:
    def test_folders_require_valid_type(self, client, learner_headers):
        assert client.get("/content/folders", headers=learner_headers).status_code == 400
        assert client.get("/content/folders?type=audio", headers=learner_headers).status_code == 400

    def test_folders_include_item_counts(self, client, learner_headers):
        folder = _folder("Books", FolderTypeEnum.ebook)
        _folder("Clips", FolderTypeEnum.video)
        db.session.add(Ebook(title="Intro", file_url="/intro.pdf", folder_id=folder.id))
        db.session.commit()

        data = client.get("/content/folders?type=ebook", headers=learner_headers).get_json()
        assert len(data) == 1
        assert data[0]["_count"]["ebooks"] == 1

    def test_filter_items_by_folder(self, client, learner_headers):
        folder = _folder("Clips", FolderTypeEnum.video)
        db.session.add_all([
            Video(title="In folder", url="/a.mp4", folder_id=folder.id),
            Video(title="Loose", url="/b.mp4"),
        ])
        db.session.commit()

        everything = client.get("/content/videos", headers=learner_headers).get_json()
        filtered = client.get(f"/content/videos?folder_id={folder.id}", headers=learner_headers).get_json()
        assert len(everything) == 2
        assert [v["title"] for v in filtered] == ["In folder"]


class TestConsumptionPoints:
    def test_video_points_awarded_once(self, client, learner, learner_headers):
        video = Video(title="Lesson", url="/lesson.mp4")
        db.session.add(video)
        db.session.commit()

        first = client.post(f"/content/videos/{video.id}/watch", headers=learner_headers).get_json()
        second = client.post(f"/content/videos/{video.id}/watch", headers=learner_headers).get_json()

        assert first["earned_points"] == 50
        assert second == {"message": "Progress recorded", "earned_points": 0, "already_completed": True}
        profile = GamificationProfile.query.filter_by(user_id=learner.id).one()
        assert profile.total_points == 50

    def test_ebook_read_points(self, client, learner_headers):
        ebook = Ebook(title="Guide", file_url="/guide.pdf")
        db.session.add(ebook)
        db.session.commit()

        res = client.post(f"/content/ebooks/{ebook.id}/read", headers=learner_headers)
        assert res.get_json()["earned_points"] == 30

    def test_unknown_item_is_404(self, client, learner_headers):
        assert client.post("/content/ebooks/77/read", headers=learner_headers).status_code == 404


class TestContentAdmin:
    def test_folder_crud(self, client, admin_headers):
        res = client.post("/admin/content/folders", json={"name": "Books", "type": "ebook"}, headers=admin_headers)
        assert res.status_code == 201
        folder_id = res.get_json()["id"]

        res = client.put(f"/admin/content/folders/{folder_id}", json={"name": "E-books"}, headers=admin_headers)
        assert res.get_json()["name"] == "E-books"

        res = client.delete(f"/admin/content/folders/{folder_id}", headers=admin_headers)
        assert res.status_code == 200
        assert db.session.get(ContentFolder, folder_id) is None

    def test_folder_type_must_match_item(self, client, admin_headers):
        video_folder = _folder("Clips", FolderTypeEnum.video)
        res = client.post("/admin/content/ebooks", json={
            "title": "Misplaced",
            "file_url": "/m.pdf",
            "folder_id": video_folder.id
        }, headers=admin_headers)
        assert res.status_code == 400

    def test_video_crud(self, client, admin_headers):
        folder = _folder("Clips", FolderTypeEnum.video)
        res = client.post("/admin/content/videos", json={
            "title": "Loops",
            "url": "/loops.mp4",
            "duration": 300,
            "folder_id": folder.id
        }, headers=admin_headers)
        assert res.status_code == 201
        video_id = res.get_json()["id"]

        res = client.put(f"/admin/content/videos/{video_id}", json={"duration": 420}, headers=admin_headers)
        assert res.get_json()["duration"] == 420

        assert client.delete(f"/admin/content/videos/{video_id}", headers=admin_headers).status_code == 200

    def test_learner_cannot_create_content(self, client, learner_headers):
        res = client.post("/admin/content/folders", json={"name": "X", "type": "video"}, headers=learner_headers)
        assert res.status_code == 403
