from django.core.cache import cache
from django.core.files.uploadedfile import SimpleUploadedFile
from django.test import RequestFactory, SimpleTestCase, override_settings
from django.urls import reverse

from ..ratelimit import SECURITY_HEADERS, TOO_MANY_REQUESTS_MESSAGE, FixedWindowRateLimiter, client_key
from .base import BaseTestCase


class FixedWindowRateLimiterTest(SimpleTestCase):
	def setUp(self):
		cache.clear()
		self.limiter = FixedWindowRateLimiter(cache, window_seconds=60, prefix='test')

	def test_allows_up_to_limit(self):
		results = [self.limiter.hit('client', 3) for _ in range(5)]
		self.assertEqual(results, [True, True, True, False, False])

	def test_keys_are_independent(self):
		self.assertTrue(self.limiter.hit('a', 1))
		self.assertFalse(self.limiter.hit('a', 1))
		self.assertTrue(self.limiter.hit('b', 1))

	def test_reset_starts_a_new_window(self):
		self.limiter.hit('a', 1)
		self.limiter.hit('a', 1)
		self.limiter.reset('a')
		self.assertTrue(self.limiter.hit('a', 1))


class ClientKeyTest(SimpleTestCase):
	def test_forwarded_address_wins(self):
		request = RequestFactory().get('/', HTTP_X_FORWARDED_FOR='203.0.113.5, 10.0.0.1')
		self.assertEqual(client_key(request), '203.0.113.5')

	def test_remote_address(self):
		request = RequestFactory().get('/', REMOTE_ADDR='198.51.100.7')
		self.assertEqual(client_key(request), '198.51.100.7')


class RateLimitMiddlewareTest(BaseTestCase):
	@override_settings(DOC2HTML_RATE_LIMITS={'max_requests': 2})
	def test_api_requests_are_throttled(self):
		url = reverse('doc2html:status', args=['00000000-0000-0000-0000-000000000000'])
		self.assertEqual(self.client.get(url).status_code, 404)
		self.assertEqual(self.client.get(url).status_code, 404)
		response = self.client.get(url)
		self.assertEqual(response.status_code, 429)
		self.assertEqual(response.json()['error'], TOO_MANY_REQUESTS_MESSAGE)

	@override_settings(DOC2HTML_RATE_LIMITS={'max_requests': 1})
	def test_pages_outside_the_api_are_not_throttled(self):
		for _ in range(3):
			self.assertEqual(self.client.get(reverse('doc2html:home')).status_code, 200)

	@override_settings(DOC2HTML_RATE_LIMITS={'max_uploads': 1})
	def test_uploads_have_their_own_limit(self):
		url = reverse('doc2html:api_upload')
		first = self.client.post(url, {'file': SimpleUploadedFile('a.txt', b'Hello')})
		second = self.client.post(url, {'file': SimpleUploadedFile('b.txt', b'Hello')})
		self.assertEqual(first.status_code, 202)
		self.assertEqual(second.status_code, 429)
		status_url = reverse('doc2html:status', args=[first.json()['id']])
		self.assertEqual(self.client.get(status_url).status_code, 200)

	def test_security_headers_on_every_response(self):
		for url in (reverse('doc2html:home'), reverse('doc2html:list_files')):
			response = self.client.get(url)
			for header, value in SECURITY_HEADERS.items():
				with self.subTest(url=url, header=header):
					self.assertEqual(response[header], value)
