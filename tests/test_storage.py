from sawari.services.storage import LocalFileStorage


class TestLocalFileStorage:
    async def test_replace_removes_file_saved_under_another_extension(self, tmp_path):
        storage = LocalFileStorage(root=str(tmp_path), base_url="/media/")
        old_url = await storage.save("payment_qrs/esewa.png", b"png", "image/png")

        new_url = await storage.replace(old_url, "payment_qrs/esewa.webp", b"webp", "image/webp")

        assert new_url == "/media/payment_qrs/esewa.webp"
        assert not (tmp_path / "payment_qrs" / "esewa.png").exists()
        assert (tmp_path / "payment_qrs" / "esewa.webp").read_bytes() == b"webp"

    async def test_replace_same_path_keeps_new_content(self, tmp_path):
        storage = LocalFileStorage(root=str(tmp_path), base_url="/media")
        old_url = await storage.save("profile_pictures/u1.png", b"old", "image/png")

        await storage.replace(old_url, "profile_pictures/u1.png", b"new", "image/png")

        assert (tmp_path / "profile_pictures" / "u1.png").read_bytes() == b"new"

    async def test_foreign_urls_are_left_alone(self, tmp_path):
        storage = LocalFileStorage(root=str(tmp_path), base_url="/media")

        assert storage.path_from_url("https://cdn.example.com/a.png") is None
        assert storage.path_from_url("/media/profile_pictures/u1.png") == "profile_pictures/u1.png"
