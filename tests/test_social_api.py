import base64
import unittest

from support import ApiTestCase

from coach_api.core.memory_store import InMemoryStore
from coach_api.social.service import clamp_page

PNG_DATA_URI = "data:image/png;base64," + base64.b64encode(b"\x89PNG image").decode()


class ClampPageTests(unittest.TestCase):
    def test_clamp_page(self):
        self.assertEqual(clamp_page("150", "-5"), (100, 0))
        self.assertEqual(clamp_page(None, None), (20, 0))
        self.assertEqual(clamp_page("abc", "xyz"), (20, 0))
        self.assertEqual(clamp_page("0", "3"), (0, 3))
        self.assertEqual(clamp_page("-4", "2"), (0, 2))
        self.assertEqual(clamp_page("10items", "5"), (10, 5))


class FeedTests(ApiTestCase):
    def setUp(self):
        super().setUp()
        for day in range(1, 6):
            self.seed("posts", {"autor_email": "a@x.com", "conteudo": f"post {day}", "criado_em": f"2024-01-0{day}T10:00:00Z"})

    def test_feed_is_newest_first_with_counts(self):
        self.seed("curtidas", {"post_id": 5, "usuario_email": "b@x.com"}, {"post_id": 5, "usuario_email": "c@x.com"})
        for minute in range(4):
            self.seed(
                "comentarios",
                {"post_id": 5, "usuario_email": "b@x.com", "texto": f"c{minute}", "criado_em": f"2024-01-05T11:0{minute}:00Z"},
            )

        posts = self.client.get("/posts/feed", params={"limit": 2}).json()
        self.assertEqual([p["id"] for p in posts], [5, 4])
        top = posts[0]
        self.assertEqual(top["curtidas_count"], 2)
        self.assertEqual(top["comentarios_count"], 4)
        self.assertEqual([c["texto"] for c in top["comentarios_preview"]], ["c3", "c2", "c1"])
        self.assertEqual(posts[1]["curtidas_count"], 0)
        self.assertEqual(posts[1]["comentarios_preview"], [])

    def test_page_clamping(self):
        self.assertEqual(len(self.client.get("/posts/feed/150/-5").json()), 5)
        self.assertEqual([p["id"] for p in self.client.get("/posts/feed/2/3").json()], [2, 1])
        self.assertEqual(self.client.get("/posts/feed/10/50").json(), [])
        self.assertEqual(self.client.get("/posts/feed/0/0").json(), [])
        self.assertEqual(len(self.client.get("/posts/feed").json()), 5)


class FeedWithoutSocialTablesTests(ApiTestCase):
    def make_store(self):
        return InMemoryStore(missing_tables=["curtidas", "comentarios"])

    def test_missing_like_and_comment_tables_read_as_zero(self):
        self.seed("posts", {"autor_email": "a@x.com", "conteudo": "oi", "criado_em": "2024-01-01T00:00:00Z"})
        posts = self.client.get("/posts/feed").json()
        self.assertEqual(posts[0]["curtidas_count"], 0)
        self.assertEqual(posts[0]["comentarios_count"], 0)
        self.assertEqual(posts[0]["comentarios_preview"], [])


class LikeTests(ApiTestCase):
    def setUp(self):
        super().setUp()
        self.seed("posts", {"autor_email": "a@x.com", "conteudo": "oi"})

    def test_toggle_parity(self):
        states = [
            self.client.post("/posts/1/curtir", json={"usuario_email": "B@x.com"}).json()["curtido"]
            for _ in range(3)
        ]
        self.assertEqual(states, [True, False, True])
        self.assertEqual(self.client.get("/posts/1/curtidas").json(), {"post_id": 1, "curtidas_count": 1})
        self.assertEqual(self.client.get("/posts/1/curtido-por/b@x.com").json(), {"curtido": True})
        self.assertEqual(self.client.get("/posts/1/curtido-por/c@x.com").json(), {"curtido": False})

    def test_header_identifies_user(self):
        resp = self.client.post("/posts/1/curtir", headers={"X-User-Email": "c@x.com"})
        self.assertEqual(resp.json(), {"success": True, "curtido": True})
        self.assertEqual(self.store.rows("curtidas")[0]["usuario_email"], "c@x.com")

    def test_user_is_required(self):
        resp = self.client.post("/posts/1/curtir", json={})
        self.assertEqual(resp.status_code, 400)
        self.assertEqual(resp.json()["error"], "usuario_email is required")

    def test_invalid_post_id(self):
        resp = self.client.post("/posts/abc/curtir", json={"usuario_email": "b@x.com"})
        self.assertEqual(resp.status_code, 400)


class CommentAndPostTests(ApiTestCase):
    def test_add_comment(self):
        self.seed("posts", {"autor_email": "a@x.com", "conteudo": "oi"})
        resp = self.client.post("/posts/1/comentar", json={"texto": "  boa!  ", "usuario_email": "b@x.com"})
        self.assertEqual(resp.status_code, 200)
        data = resp.json()["data"]
        self.assertEqual(data["texto"], "boa!")
        self.assertEqual(data["usuario_nome"], "Anônimo")

        empty = self.client.post("/posts/1/comentar", json={"texto": " ", "usuario_email": "b@x.com"})
        self.assertEqual(empty.status_code, 400)

    def test_create_text_post(self):
        resp = self.client.post("/posts", json={"conteudo": "treino feito", "autor_email": "A@x.com", "autor_nome": "Ana"})
        self.assertEqual(resp.status_code, 200)
        data = resp.json()["data"]
        self.assertEqual(data["autor_email"], "a@x.com")
        self.assertIsNone(data["imagem_url"])

    def test_create_post_with_data_uri_image(self):
        resp = self.client.post("/posts", json={"imagem_url": PNG_DATA_URI}, headers={"X-User-Email": "a@x.com"})
        self.assertEqual(resp.status_code, 200)
        url = resp.json()["data"]["imagem_url"]
        self.assertTrue(url.startswith("/uploads/posts/post_"))
        self.assertTrue(url.endswith(".png"))
        self.assertIsNotNone(self.attachments.resolve(url))

    def test_create_post_with_multipart_image(self):
        resp = self.client.post(
            "/posts",
            data={"autor_email": "a@x.com", "conteudo": ""},
            files={"imagem": ("foto.jpg", b"jpeg bytes", "image/jpeg")},
        )
        self.assertEqual(resp.status_code, 200)
        url = resp.json()["data"]["imagem_url"]
        self.assertTrue(url.endswith("_foto.jpg"))
        self.assertEqual(self.attachments.resolve(url).read_bytes(), b"jpeg bytes")

    def test_post_needs_author_and_content(self):
        self.assertEqual(self.client.post("/posts", json={"conteudo": "oi"}).status_code, 400)
        resp = self.client.post("/posts", json={"autor_email": "a@x.com", "conteudo": "  "})
        self.assertEqual(resp.status_code, 400)

    def test_post_body_must_be_an_object(self):
        resp = self.client.post("/posts", content=b"[1, 2]", headers={"Content-Type": "application/json"})
        self.assertEqual(resp.status_code, 400)
        self.assertEqual(resp.json()["error"], "body is invalid")


if __name__ == "__main__":
    unittest.main()
