import unittest
from unittest import mock

import httpx

from support import ApiTestCase

from coach_api.products import scraper
from coach_api.products.page import render_product_page

PRODUCT_HTML = """
<html><head>
<meta property="og:title" content="Whey Protein 900g - Mercado Livre">
<meta property="og:image" content="https://http2.mlstatic.com/cover.jpg">
</head><body>
<img class="x" src="https://http2.mlstatic.com/a.webp">
<img src="https://http2.mlstatic.com/placeholder.png">
<img src="/relative/b.jpg">
<img src="https://http2.mlstatic.com/cover.jpg">
</body></html>
"""


class ScraperTests(unittest.IsolatedAsyncioTestCase):
    def test_title_and_images(self):
        self.assertEqual(scraper.product_title(PRODUCT_HTML), "Whey Protein 900g")
        self.assertEqual(scraper.product_title("<html></html>"), "Produto ML")
        self.assertEqual(
            scraper.product_images(PRODUCT_HTML),
            ["https://http2.mlstatic.com/cover.jpg", "https://http2.mlstatic.com/a.webp"],
        )

    def test_meta_attribute_order_and_quoting(self):
        html = (
            "<head>"
            "<meta content='Creatina 300g - Loja' property='og:title'>"
            "<meta name=\"og:image\" content=\"https://cdn.x/creatina.PNG?w=500\">"
            "</head>"
        )
        self.assertEqual(scraper.product_title(html), "Creatina 300g")
        self.assertEqual(scraper.og_property(html, "image"), "https://cdn.x/creatina.PNG?w=500")
        self.assertEqual(scraper.product_images(html), ["https://cdn.x/creatina.PNG?w=500"])

    def test_non_image_sources_are_skipped(self):
        html = '<img src="https://cdn.x/pixel.gif"><img src="https://cdn.x/track?id=1"><img src="https://cdn.x/ok.jpeg">'
        self.assertEqual(scraper.product_images(html), ["https://cdn.x/ok.jpeg"])

    def test_image_limit(self):
        html = "".join(f'<img src="https://cdn/{i}.png">' for i in range(10))
        self.assertEqual(len(scraper.product_images(html)), 5)

    async def test_fetch_html(self):
        transport = httpx.MockTransport(lambda request: httpx.Response(200, text=PRODUCT_HTML))
        html = await scraper.fetch_html("https://produto.mercadolivre.com.br/x", transport=transport)
        self.assertIn("og:title", html)

    async def test_fetch_html_errors(self):
        with self.assertRaises(scraper.ScrapeError) as ctx:
            await scraper.fetch_html("ftp://x")
        self.assertIsNone(ctx.exception.status_code)

        transport = httpx.MockTransport(lambda request: httpx.Response(403, text="nope"))
        with self.assertRaises(scraper.ScrapeError) as ctx:
            await scraper.fetch_html("https://x.com/p", transport=transport)
        self.assertEqual(ctx.exception.status_code, 403)


class ProductPageTests(unittest.TestCase):
    def test_values_are_escaped(self):
        product = {"id": 3, "titulo": '<script>alert("x")</script>', "link_mercadolivre": "https://x.com/?a=1&b=2"}
        html = render_product_page(product, images=["https://cdn/a.png"], cover="https://cdn/a.png", site_url="https://loja.app")
        self.assertNotIn("<script>alert", html)
        self.assertIn("&lt;script&gt;", html)
        self.assertIn("https://x.com/?a=1&amp;b=2", html)
        self.assertIn('content="https://loja.app/produto/3"', html)


class ProductApiTests(ApiTestCase):
    def test_create_orders_and_soft_delete(self):
        for title in ("A", "B"):
            resp = self.client.post(
                "/produtos",
                json={"titulo": title, "imagem_url": "https://cdn/x.png", "link_mercadolivre": "https://ml/x"},
            )
            self.assertEqual(resp.status_code, 200)
        self.assertEqual([(p["titulo"], p["ordem"]) for p in self.client.get("/produtos").json()], [("A", 1), ("B", 2)])

        updated = self.client.put("/produtos/2", json={"ordem": 0, "titulo": "B2"}).json()["data"]
        self.assertEqual((updated["titulo"], updated["ordem"], updated["imagem_url"]), ("B2", 0, "https://cdn/x.png"))
        self.assertEqual([p["titulo"] for p in self.client.get("/produtos").json()], ["B2", "A"])
        self.assertEqual(self.client.put("/produtos/9", json={"titulo": "x"}).status_code, 404)

        self.assertTrue(self.client.delete("/produtos/1").json()["success"])
        self.assertEqual([p["titulo"] for p in self.client.get("/produtos").json()], ["B2"])
        self.assertEqual(len(self.store.rows("produtos_loja")), 2)

    def test_product_page(self):
        self.seed("produtos_loja", {"titulo": "Creatina", "imagem_url": "https://cdn/c.png", "link_mercadolivre": "", "ativo": True})
        resp = self.client.get("/produto/1")
        self.assertEqual(resp.status_code, 200)
        self.assertIn("text/html", resp.headers["content-type"])
        self.assertIn('og:image" content="https://cdn/c.png"', resp.text)

        missing = self.client.get("/produto/99")
        self.assertEqual(missing.status_code, 404)
        self.assertIn("Produto não encontrado", missing.text)
        self.assertEqual(self.client.get("/produto/abc").status_code, 404)

    def test_extract_metadata(self):
        with mock.patch.object(scraper, "fetch_html", mock.AsyncMock(return_value=PRODUCT_HTML)):
            resp = self.client.post("/produtos/extract-ml", json={"url": "https://produto.mercadolivre.com.br/x"})
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(
            resp.json(),
            {
                "titulo": "Whey Protein 900g",
                "imagem_url": "https://http2.mlstatic.com/cover.jpg",
                "link_mercadolivre": "https://produto.mercadolivre.com.br/x",
            },
        )

    def test_extract_metadata_failures(self):
        blocked = mock.AsyncMock(side_effect=scraper.ScrapeError("Page returned 403.", status_code=403))
        with mock.patch.object(scraper, "fetch_html", blocked):
            resp = self.client.post("/produtos/extract-ml", json={"url": "https://x.com/p"})
        self.assertEqual(resp.status_code, 400)
        self.assertEqual(resp.json()["error"], "Could not access the link.")

        down = mock.AsyncMock(side_effect=scraper.ScrapeError("Request failed"))
        with mock.patch.object(scraper, "fetch_html", down):
            resp = self.client.post("/produtos/extract-ml", json={"url": "https://x.com/p"})
        self.assertEqual(resp.status_code, 502)


if __name__ == "__main__":
    unittest.main()
