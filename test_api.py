"""
HTTP API tests: auth, photos, upload, albums, tags, views, analytics,
media and SEO routes, plus config loading.

Run: python3 -m pytest test_api.py -v
"""

import os
import sys
import json
import shutil
import tempfile
import unittest
from io import BytesIO

from PIL import Image

# Ensure project root is on sys.path
_script_dir = os.path.dirname(os.path.abspath(__file__))
if _script_dir not in sys.path:
    sys.path.insert(0, _script_dir)

from fastapi.testclient import TestClient


def make_jpeg(size=(640, 480), color=(40, 140, 90)):
    buf = BytesIO()
    Image.new('RGB', size, color).save(buf, format='JPEG')
    return buf.getvalue()


# ============================================================
# Config
# ============================================================

class TestConfig(unittest.TestCase):

    def setUp(self):
        self.tmpdir = tempfile.mkdtemp()
        self.path = os.path.join(self.tmpdir, 'gallery_config.json')

    def tearDown(self):
        shutil.rmtree(self.tmpdir, ignore_errors=True)

    def test_defaults_merged(self):
        from api.config import load_config
        with open(self.path, 'w') as f:
            json.dump({'session_days': 3, 'images': {'grid_size': 500}, 'auth_secret': 'x'}, f)
        config = load_config(path=self.path, environ={})
        self.assertEqual(config['session_days'], 3)
        self.assertEqual(config['images']['grid_size'], 500)
        self.assertEqual(config['images']['large_size'], 1200)
        self.assertEqual(config['admin_username'], 'admin')

    def test_environment_overrides_file(self):
        from api.config import load_config
        with open(self.path, 'w') as f:
            json.dump({'db_path': 'file.db', 'auth_secret': 'x'}, f)
        config = load_config(path=self.path, environ={'DB_PATH': 'env.db', 'ADMIN_PASSWORD': 'pw'})
        self.assertEqual(config['db_path'], 'env.db')
        self.assertEqual(config['admin_password'], 'pw')

    def test_missing_secret_generated_and_persisted(self):
        from api.config import load_config
        with open(self.path, 'w') as f:
            json.dump({'domain': 'https://photos.example.com'}, f)
        config = load_config(path=self.path, environ={})
        self.assertEqual(len(config['auth_secret']), 64)
        with open(self.path) as f:
            saved = json.load(f)
        self.assertEqual(saved['auth_secret'], config['auth_secret'])
        self.assertEqual(saved['domain'], 'https://photos.example.com')

    def test_missing_file_uses_defaults(self):
        from api.config import load_config
        config = load_config(path=os.path.join(self.tmpdir, 'absent.json'), environ={})
        self.assertEqual(config['session_days'], 7)
        self.assertTrue(config['auth_secret'])
        self.assertFalse(os.path.exists(os.path.join(self.tmpdir, 'absent.json')))


class TestClientIp(unittest.TestCase):

    def _request(self, headers, client=('10.0.0.1', 4321)):
        from starlette.requests import Request
        return Request({
            'type': 'http',
            'method': 'GET',
            'path': '/',
            'headers': [(k.encode(), v.encode()) for k, v in headers.items()],
            'client': client,
        })

    def test_forwarded_for_first_hop(self):
        from api.request_info import get_client_ip
        request = self._request({'x-forwarded-for': '203.0.113.5, 10.0.0.1'})
        self.assertEqual(get_client_ip(request, ['x-forwarded-for', 'x-real-ip']), '203.0.113.5')

    def test_header_order(self):
        from api.request_info import get_client_ip
        request = self._request({'x-real-ip': '198.51.100.7', 'fly-client-ip': '192.0.2.1'})
        self.assertEqual(get_client_ip(request, ['x-forwarded-for', 'x-real-ip', 'fly-client-ip']),
                         '198.51.100.7')

    def test_untrusted_headers_ignored(self):
        from api.request_info import get_client_ip
        request = self._request({'x-forwarded-for': '203.0.113.5'})
        self.assertEqual(get_client_ip(request, []), '10.0.0.1')


# ============================================================
# Application
# ============================================================

class ApiTestCase(unittest.TestCase):

    def setUp(self):
        from api import create_app
        self.tmpdir = tempfile.mkdtemp()
        self.scan_dir = os.path.join(self.tmpdir, 'incoming')
        self.public_dir = os.path.join(self.tmpdir, 'public')
        os.makedirs(self.scan_dir)
        self.app = create_app({
            'db_path': os.path.join(self.tmpdir, 'gallery.db'),
            'scan_dir': self.scan_dir,
            'public_dir': self.public_dir,
            'admin_username': 'admin',
            'admin_password': 'secret',
            'auth_secret': 'test-secret',
            'domain': 'https://photos.example.com',
            'geo_lookup_url': '',
        })
        self.client = TestClient(self.app)
        self.client.__enter__()

    def tearDown(self):
        self.client.__exit__(None, None, None)
        shutil.rmtree(self.tmpdir, ignore_errors=True)

    def login(self):
        res = self.client.post('/api/auth', json={'username': 'admin', 'password': 'secret'})
        self.assertEqual(res.status_code, 200)

    def upload(self, name='lake.jpg', data=None, album_id=''):
        res = self.client.post(
            '/api/upload',
            files=[('files', (name, data or make_jpeg(), 'image/jpeg'))],
            data={'album_id': str(album_id)},
        )
        self.assertEqual(res.status_code, 200, res.text)
        return res.json()


class TestAuthRoutes(ApiTestCase):

    def test_login_sets_session_cookie(self):
        res = self.client.post('/api/auth', json={'username': 'admin', 'password': 'secret'})
        self.assertEqual(res.status_code, 200)
        self.assertEqual(res.json(), {'authenticated': True})
        set_cookie = res.headers['set-cookie'].lower()
        self.assertIn('session=', set_cookie)
        self.assertIn('httponly', set_cookie)
        self.assertIn('samesite=lax', set_cookie)
        self.assertTrue(self.client.get('/api/auth').json()['authenticated'])

    def test_wrong_password(self):
        res = self.client.post('/api/auth', json={'username': 'admin', 'password': 'nope'})
        self.assertEqual(res.status_code, 401)
        self.assertEqual(res.json(), {'detail': 'Invalid credentials'})
        self.assertFalse(self.client.get('/api/auth').json()['authenticated'])

    def test_logout(self):
        self.login()
        res = self.client.delete('/api/auth')
        self.assertEqual(res.status_code, 200)
        self.assertEqual(res.json(), {'authenticated': False})

    def test_tampered_token_rejected(self):
        res = self.client.post('/api/albums', json={'name': 'X'}, headers={'Cookie': 'session=not-a-jwt'})
        self.assertEqual(res.status_code, 401)

    def test_admin_routes_require_session(self):
        for method, url in (('post', '/api/photos'), ('delete', '/api/photos/1'),
                            ('post', '/api/upload'), ('delete', '/api/photos/views'),
                            ('get', '/api/photos/views'), ('get', '/api/analytics')):
            res = getattr(self.client, method)(url)
            self.assertEqual(res.status_code, 401, url)


class TestPhotoRoutes(ApiTestCase):

    def test_upload_then_list_and_get(self):
        self.login()
        photos = self.upload('my lake.jpg')
        self.assertEqual(len(photos), 1)
        photo = photos[0]
        self.assertTrue(photo['filename'].endswith('_0_my_lake.jpg'))
        self.assertEqual((photo['width'], photo['height']), (640, 480))

        listing = self.client.get('/api/photos').json()
        self.assertEqual(listing['total'], 1)
        self.assertEqual(listing['photos'][0]['id'], photo['id'])
        self.assertEqual(self.client.get(f"/api/photos/{photo['id']}").json()['path'], photo['path'])

    def test_upload_without_files(self):
        self.login()
        res = self.client.post('/api/upload', data={'album_id': ''})
        self.assertEqual(res.status_code, 400)

    def test_upload_corrupt_file_omitted(self):
        self.login()
        self.assertEqual(self.upload('bad.jpg', data=b'not an image'), [])

    def test_upload_to_unknown_album(self):
        self.login()
        res = self.client.post('/api/upload', files=[('files', ('a.jpg', make_jpeg(), 'image/jpeg'))],
                               data={'album_id': '999'})
        self.assertEqual(res.status_code, 404)

    def test_delete_then_404(self):
        self.login()
        photo = self.upload()[0]
        self.assertEqual(self.client.delete(f"/api/photos/{photo['id']}").status_code, 200)
        self.assertEqual(self.client.get(f"/api/photos/{photo['id']}").status_code, 404)
        self.assertEqual(self.client.delete(f"/api/photos/{photo['id']}").status_code, 404)
        self.assertFalse(os.path.exists(os.path.join(self.public_dir, photo['path'].lstrip('/'))))

    def test_patch_photo(self):
        self.login()
        album = self.client.post('/api/albums', json={'name': 'Coast'}).json()
        photo = self.upload()[0]

        res = self.client.patch(f"/api/photos/{photo['id']}", json={'album_id': album['id']})
        self.assertEqual(res.json()['album_id'], album['id'])
        res = self.client.patch(f"/api/photos/{photo['id']}", json={'filename': 'Renamed'})
        self.assertEqual(res.json()['filename'], 'Renamed')
        self.assertEqual(res.json()['album_id'], album['id'])
        res = self.client.patch(f"/api/photos/{photo['id']}", json={'album_id': None})
        self.assertIsNone(res.json()['album_id'])

    def test_patch_empty_filename_rejected(self):
        self.login()
        photo = self.upload()[0]
        for value in (None, '', '   '):
            res = self.client.patch(f"/api/photos/{photo['id']}", json={'filename': value})
            self.assertEqual(res.status_code, 400, value)
            self.assertIn('detail', res.json())
        self.assertEqual(self.client.get(f"/api/photos/{photo['id']}").json()['filename'], photo['filename'])

    def test_scan_endpoint(self):
        self.login()
        with open(os.path.join(self.scan_dir, 'peak.jpg'), 'wb') as f:
            f.write(make_jpeg())

        res = self.client.post('/api/photos')
        self.assertEqual(res.status_code, 200)
        body = res.json()
        self.assertEqual((body['added'], body['skipped']), (1, 0))
        self.assertEqual(set(body), {'added', 'skipped', 'backfilled', 'exif_backfilled', 'hue_backfilled'})

        self.assertEqual(self.client.post('/api/photos').json()['added'], 0)

    def test_photo_tags(self):
        self.login()
        photo = self.upload()[0]
        tag = self.client.post('/api/tags', json={'name': 'Golden Hour'}).json()
        self.assertEqual(tag['slug'], 'golden-hour')

        res = self.client.put(f"/api/photos/{photo['id']}/tags", json={'tag_ids': [tag['id'], 9999]})
        self.assertEqual([t['id'] for t in res.json()], [tag['id']])
        self.assertEqual(len(self.client.get(f"/api/photos/{photo['id']}/tags").json()), 1)
        self.assertEqual(len(self.client.get('/api/tags', params={'photo_id': photo['id']}).json()), 1)
        self.assertEqual(self.client.get('/api/photos', params={'tag': 'golden-hour'}).json()['total'], 1)

    def test_blank_tag_rejected(self):
        self.login()
        self.assertEqual(self.client.post('/api/tags', json={'name': '   '}).status_code, 400)


class TestAlbumRoutes(ApiTestCase):

    def test_create_and_get_album(self):
        self.login()
        res = self.client.post('/api/albums', json={'name': 'Rocky Mountains!', 'description': 'Peaks'})
        self.assertEqual(res.status_code, 201)
        album = res.json()
        self.assertEqual(album['slug'], 'rocky-mountains')

        self.upload(album_id=album['id'])
        detail = self.client.get('/api/albums/rocky-mountains').json()
        self.assertEqual(detail['photo_count'], 1)
        self.assertEqual(len(detail['photos']), 1)
        self.assertEqual(self.client.get('/api/albums').json()[0]['photo_count'], 1)

    def test_duplicate_album_conflict(self):
        self.login()
        self.client.post('/api/albums', json={'name': 'Alps'})
        res = self.client.post('/api/albums', json={'name': 'alps'})
        self.assertEqual(res.status_code, 409)
        self.assertEqual(res.json()['detail'], 'Album with this name already exists')

    def test_unknown_album(self):
        self.assertEqual(self.client.get('/api/albums/nope').status_code, 404)

    def test_set_cover(self):
        self.login()
        album = self.client.post('/api/albums', json={'name': 'Alps'}).json()
        photo = self.upload(album_id=album['id'])[0]
        res = self.client.put(f"/api/albums/{album['id']}/cover", json={'photo_id': photo['id']})
        self.assertEqual(res.json()['cover_photo_id'], photo['id'])


class TestViewRoutes(ApiTestCase):

    def test_photo_view_counted_once(self):
        self.login()
        photo = self.upload()[0]
        for _ in range(2):
            res = self.client.post('/api/photos/view', json={'photo_id': photo['id'], 'ip': '1.1.1.1'})
            self.assertEqual(res.status_code, 200)

        views = self.client.get('/api/photos/views').json()
        self.assertEqual(views['counts'], {str(photo['id']): 1})
        self.assertEqual(views['top'][0]['views'], 1)

        viewers = self.client.get('/api/photos/viewers', params={'photo_id': photo['id']}).json()
        self.assertEqual(len(viewers), 1)
        self.assertEqual(viewers[0]['total_views'], 2)

        self.assertEqual(self.client.delete('/api/photos/views').status_code, 200)
        self.assertEqual(self.client.get('/api/photos/views').json()['counts'], {})

    def test_view_unknown_photo(self):
        self.assertEqual(self.client.post('/api/photos/view', json={'photo_id': 404}).status_code, 404)

    def test_bot_view_not_counted(self):
        self.login()
        photo = self.upload()[0]
        self.client.post('/api/photos/view', json={'photo_id': photo['id']},
                         headers={'user-agent': 'Googlebot/2.1'})
        self.assertEqual(self.client.get('/api/photos/views').json()['counts'], {})


class TestAnalyticsRoutes(ApiTestCase):

    def test_track_and_summary(self):
        self.client.post('/api/analytics/track', json={'path': '/gallery', 'referrer': 'https://example.com'},
                         headers={'x-forwarded-for': '203.0.113.9'})
        self.client.post('/api/analytics/track', json={'path': '/'}, headers={'user-agent': 'bingbot'})
        self.login()

        body = self.client.get('/api/analytics', params={'days': 7}).json()
        self.assertEqual(body['total_views'], 1)
        self.assertEqual(body['unique_visitors'], 1)
        self.assertEqual(body['top_pages'], [{'name': '/gallery', 'count': 1}])
        self.assertEqual(len(body['views_over_time']), 1)

    def test_invalid_dates(self):
        self.login()
        res = self.client.get('/api/analytics', params={'from': '2024-13-01', 'to': '2024-01-31'})
        self.assertEqual(res.status_code, 400)
        res = self.client.get('/api/analytics', params={'from': '01/01/2024', 'to': '2024-01-31'})
        self.assertEqual(res.status_code, 400)

    def test_oversized_days_rejected(self):
        self.login()
        res = self.client.get('/api/analytics', params={'days': 1000000})
        self.assertEqual(res.status_code, 400)
        self.assertIn('days', res.json()['detail'])

    def test_explicit_range(self):
        self.login()
        res = self.client.get('/api/analytics', params={'from': '2000-01-01', 'to': '2000-01-31'})
        self.assertEqual(res.status_code, 200)
        self.assertEqual(res.json()['total_views'], 0)


class TestMediaRoutes(ApiTestCase):

    def test_etag_and_304(self):
        self.login()
        photo = self.upload()[0]

        res = self.client.get(photo['thumbnail_path'])
        self.assertEqual(res.status_code, 200)
        self.assertEqual(res.headers['cache-control'], 'public, max-age=2592000, immutable')
        etag = res.headers['etag']

        res = self.client.get(photo['thumbnail_path'], headers={'If-None-Match': etag})
        self.assertEqual(res.status_code, 304)
        self.assertEqual(self.client.get(photo['path']).status_code, 200)

    def test_missing_file(self):
        self.assertEqual(self.client.get('/photos/missing.jpg').status_code, 404)

    def test_traversal_refused(self):
        from api.routers.media import resolve_public_file
        from exceptions import NotFoundError
        with open(os.path.join(self.tmpdir, 'secret.txt'), 'w') as f:
            f.write('x')
        with self.assertRaises(NotFoundError):
            resolve_public_file(self.public_dir, 'photos', '../../secret.txt')


class TestSeoRoutes(ApiTestCase):

    def test_robots(self):
        res = self.client.get('/robots.txt')
        self.assertIn('Disallow: /api', res.text)
        self.assertIn('Sitemap: https://photos.example.com/sitemap.xml', res.text)

    def test_sitemap_lists_albums(self):
        self.login()
        self.client.post('/api/albums', json={'name': 'Alps'})
        res = self.client.get('/sitemap.xml')
        self.assertEqual(res.status_code, 200)
        self.assertIn('application/xml', res.headers['content-type'])
        self.assertIn('<loc>https://photos.example.com/albums/alps</loc>', res.text)
        self.assertIn('<loc>https://photos.example.com/gallery</loc>', res.text)


if __name__ == '__main__':
    unittest.main()
