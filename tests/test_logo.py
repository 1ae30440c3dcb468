import io
import unittest
from importlib import util as importlib_util

HTTPX_AVAILABLE = importlib_util.find_spec("httpx") is not None
PIL_AVAILABLE = importlib_util.find_spec("PIL") is not None
if HTTPX_AVAILABLE and PIL_AVAILABLE:
    import httpx
    from PIL import Image

    from invoice_renderer.logo import HttpLogoLoader, optimize_logo, resolve_logo_url


def png_bytes(width: int, height: int, mode: str = "RGBA") -> bytes:
    buffer = io.BytesIO()
    Image.new(mode, (width, height), (10, 20, 30, 0) if mode == "RGBA" else "red").save(buffer, format="PNG")
    return buffer.getvalue()


@unittest.skipUnless(HTTPX_AVAILABLE and PIL_AVAILABLE, "httpx and Pillow are required")
class LogoTests(unittest.TestCase):
    def _loader(self, handler) -> "HttpLogoLoader":
        client = httpx.Client(transport=httpx.MockTransport(handler))
        self.addCleanup(client.close)
        return HttpLogoLoader(client=client, base_url="http://assets.test")

    def test_resolve_logo_url(self) -> None:
        self.assertEqual(resolve_logo_url("/uploads/a.png", "http://host:8080/"), "http://host:8080/uploads/a.png")
        self.assertEqual(resolve_logo_url("uploads/a.png", "http://host"), "http://host/uploads/a.png")
        self.assertEqual(resolve_logo_url("https://cdn.test/a.png", "http://host"), "https://cdn.test/a.png")

    def test_optimize_logo_fits_and_reencodes(self) -> None:
        logo = optimize_logo(png_bytes(1600, 400))

        self.assertEqual((logo.width_px, logo.height_px), (800, 200))
        self.assertTrue(logo.data.startswith(b"\xff\xd8"))
        self.assertAlmostEqual(logo.height_for_width(40.0), 10.0)

    def test_successful_fetch_returns_logo(self) -> None:
        requested = []

        def handler(request):
            requested.append(str(request.url))
            return httpx.Response(200, content=png_bytes(320, 70, mode="RGB"))

        logo = self._loader(handler)("/uploads/logo.png")

        self.assertIsNotNone(logo)
        assert logo is not None
        self.assertEqual((logo.width_px, logo.height_px), (320, 70))
        self.assertEqual(requested, ["http://assets.test/uploads/logo.png"])

    def test_missing_url_skips_fetch(self) -> None:
        def handler(request):
            raise AssertionError("no request expected")

        loader = self._loader(handler)

        self.assertIsNone(loader(None))
        self.assertIsNone(loader("  "))

    def test_http_error_returns_none(self) -> None:
        loader = self._loader(lambda request: httpx.Response(404))

        with self.assertLogs("invoice_renderer.logo", level="WARNING"):
            self.assertIsNone(loader("/uploads/missing.png"))

    def test_timeout_returns_none(self) -> None:
        def handler(request):
            raise httpx.ReadTimeout("timed out", request=request)

        with self.assertLogs("invoice_renderer.logo", level="WARNING") as logs:
            self.assertIsNone(self._loader(handler)("/uploads/slow.png"))

        self.assertIn("timed out", logs.output[0])

    def test_malformed_url_returns_none(self) -> None:
        loader = HttpLogoLoader(base_url=None)

        with self.assertLogs("invoice_renderer.logo", level="WARNING"):
            self.assertIsNone(loader("http://exa\x00mple.com/a.png"))

    def test_timeout_applies_to_each_phase(self) -> None:
        seen = []

        def handler(request):
            seen.append(request.extensions["timeout"])
            return httpx.Response(404)

        client = httpx.Client(transport=httpx.MockTransport(handler))
        self.addCleanup(client.close)
        loader = HttpLogoLoader(client=client, timeout_ms=1500, base_url="http://assets.test")

        with self.assertLogs("invoice_renderer.logo", level="WARNING"):
            loader("/uploads/logo.png")

        self.assertEqual(seen, [{"connect": 1.5, "read": 1.5, "write": 1.5, "pool": 1.5}])

    def test_undecodable_image_returns_none(self) -> None:
        loader = self._loader(lambda request: httpx.Response(200, content=b"not an image"))

        with self.assertLogs("invoice_renderer.logo", level="WARNING"):
            self.assertIsNone(loader("/uploads/broken.png"))


if __name__ == "__main__":
    unittest.main()
