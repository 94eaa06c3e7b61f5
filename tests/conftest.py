"""Pytest fixtures for r2fs tests."""
import asyncio
import json
from datetime import datetime, timezone

import pytest
from aiohttp import web

from r2fs.core.exceptions import TransportError
from r2fs.core.storage import ObjectRecord

API_KEY = 'secret'


class FakeGateway:
    """
    In-memory gateway recording every call.

    Failure knobs:
        fail_keys: keys whose single-shot PUT fails with HTTP 500
        fail_folders: folder path -> HTTP status raised on creation
        fail_parts: part numbers that fail with HTTP 500
        create_error / abort_error: raised by initiate / abort
        hold_puts: single-shot PUTs block until cancelled
        hold_parts: part uploads block until cancelled
        on_part: hook called with the part number before it is acknowledged
    """

    def __init__(self, multipart=True):
        self.multipart = multipart
        self.calls = []
        self.objects = {}
        self.content_types = {}
        self.probe_count = 0
        self.fail_keys = set()
        self.fail_folders = {}
        self.fail_parts = set()
        self.create_error = None
        self.abort_error = None
        self.hold_puts = False
        self.put_started = asyncio.Event()
        self.hold_parts = False
        self.part_started = asyncio.Event()
        self.on_part = None

    def names(self):
        return [call[0] for call in self.calls]

    async def supports_multipart(self):
        self.probe_count += 1
        return self.multipart

    async def put_object(self, key, body, content_type='application/octet-stream', content_length=None):
        self.calls.append(('put', key))
        self.put_started.set()
        if self.hold_puts:
            await asyncio.Event().wait()
        if key in self.fail_keys:
            raise TransportError("API request failed: 500", status=500, method='PUT', path=f"/{key}")
        if isinstance(body, (bytes, bytearray)):
            data = bytes(body)
        else:
            data = b''.join([chunk async for chunk in body])
        self.objects[key] = data
        self.content_types[key] = content_type

    async def create_folder(self, path):
        self.calls.append(('folder', path))
        status = self.fail_folders.get(path)
        if status:
            raise TransportError(f"API request failed: {status}", status=status, method='PUT', path=f"/{path}")
        self.objects[path] = b''

    async def create_multipart(self, key):
        self.calls.append(('create', key))
        if self.create_error:
            raise self.create_error
        return 'upload-1'

    async def upload_part(self, key, upload_id, part_number, data):
        self.calls.append(('part', part_number, len(data)))
        self.part_started.set()
        if self.hold_parts:
            await asyncio.Event().wait()
        if self.on_part:
            self.on_part(part_number)
        if part_number in self.fail_parts:
            raise TransportError("API request failed: 500", status=500, method='PUT', path=f"/mpu/{key}")
        return f'etag-{part_number}'

    async def complete_multipart(self, key, upload_id, parts):
        self.calls.append(('complete', upload_id, parts))

    async def abort_multipart(self, key, upload_id):
        self.calls.append(('abort', upload_id))
        if self.abort_error:
            raise self.abort_error


@pytest.fixture
def gateway():
    """Fake gateway that supports multipart uploads."""
    return FakeGateway()


@pytest.fixture
def gateway_factory():
    """Build fake gateways with custom capability."""
    return FakeGateway


@pytest.fixture
def sample_records():
    """Flat listing with files, markers and nested keys."""
    uploaded = datetime(2024, 1, 2, 3, 4, 5, tzinfo=timezone.utc)
    return [
        ObjectRecord('docs/', 0, 'application/x-directory', uploaded),
        ObjectRecord('docs/report.txt', 120, 'text/plain', uploaded),
        ObjectRecord('docs/2024/q1.pdf', 2048, 'application/pdf', uploaded),
        ObjectRecord('images/cat.png', 4096, 'image/png', uploaded),
        ObjectRecord('readme.md', 10, 'text/markdown', uploaded),
    ]


@pytest.fixture
def local_tree(tmp_path):
    """
    Local directory:

        photos/
            a.jpg
            sub/
                b.jpg
            z.txt
    """
    root = tmp_path / 'photos'
    (root / 'sub').mkdir(parents=True)
    (root / 'a.jpg').write_bytes(b'aaaa')
    (root / 'sub' / 'b.jpg').write_bytes(b'bbbbbb')
    (root / 'z.txt').write_bytes(b'zz')
    return root


@pytest.fixture
def gateway_app():
    """
    aiohttp application speaking the gateway contract.

    Returns (app, state); state records stored objects and requests.
    """
    state = {
        'objects': {},
        'content_types': {},
        'parts': {},
        'completed': None,
        'aborted': [],
        'requests': [],
        'multipart': True,
        'listing': None,
        'fail_put': set(),
        'fail_complete': False,
    }

    @web.middleware
    async def check_key(request, handler):
        state['requests'].append((request.method, request.path, dict(request.query)))
        if request.headers.get('X-API-Key') != API_KEY:
            return web.Response(status=401, text='Unauthorized')
        return await handler(request)

    async def list_objects(request):
        if state['listing'] is not None:
            return web.json_response({'objects': state['listing']})
        objects = [
            {
                'key': key,
                'size': len(data),
                'uploaded': '2024-01-02T03:04:05.000Z',
                'httpMetadata': {'contentType': state['content_types'].get(key, '')},
            }
            for key, data in state['objects'].items()
        ]
        return web.json_response({'objects': objects})

    async def support_mpu(request):
        if not state['multipart']:
            return web.Response(status=404, text='Not Found')
        return web.Response(text='OK')

    async def mpu_create(request):
        key = request.match_info['key']
        state['parts'][key] = {}
        return web.json_response({'key': key, 'uploadId': 'u-1'})

    async def mpu_part(request):
        key = request.match_info['key']
        number = int(request.query['partNumber'])
        state['parts'][key][number] = await request.read()
        return web.json_response({'partNumber': number, 'ETag': f'etag-{number}'})

    async def mpu_complete(request):
        key = request.match_info['key']
        if state['fail_complete']:
            return web.Response(status=500, text='InternalError')
        body = json.loads(await request.read())
        state['completed'] = body
        parts = state['parts'].pop(key)
        state['objects'][key] = b''.join(parts[p['PartNumber']] for p in body['parts'])
        return web.json_response({'key': key})

    async def mpu_abort(request):
        key = request.match_info['key']
        state['aborted'].append((key, request.query['uploadId']))
        state['parts'].pop(key, None)
        return web.Response(status=204)

    async def put_object(request):
        key = request.match_info['key']
        if key in state['fail_put']:
            return web.Response(status=500, text='storage unavailable')
        state['objects'][key] = await request.read()
        state['content_types'][key] = request.headers.get('Content-Type', '')
        return web.Response(text='OK')

    async def get_object(request):
        key = request.match_info['key']
        if key not in state['objects']:
            return web.Response(status=404, text='Object Not Found')
        return web.Response(body=state['objects'][key])

    async def delete_object(request):
        state['objects'].pop(request.match_info['key'], None)
        return web.Response(status=204)

    app = web.Application(middlewares=[check_key])
    app.router.add_route('PATCH', '/', list_objects)
    app.router.add_get('/support_mpu', support_mpu)
    app.router.add_post('/mpu/create/{key:.+}', mpu_create)
    app.router.add_post('/mpu/complete/{key:.+}', mpu_complete)
    app.router.add_put('/mpu/{key:.+}', mpu_part)
    app.router.add_delete('/mpu/{key:.+}', mpu_abort)
    app.router.add_put('/{key:.+}', put_object)
    app.router.add_get('/{key:.+}', get_object)
    app.router.add_delete('/{key:.+}', delete_object)
    return app, state
