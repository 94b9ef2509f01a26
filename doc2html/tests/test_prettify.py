"""Tests for the whitespace-only HTML re-indenter."""

from django.test import SimpleTestCase

from ..prettify import prettify_html


SAMPLES = [
	'<p>a</p><p>b</p>',
	'<div><p>a</p></div>',
	'<table><thead><tr><th>a</th></tr></thead><tbody><tr><td>1</td></tr></tbody></table>',
	'<h1>Title</h1>\n<ul>\n<li>one</li>\n<li>two</li>\n</ul>\n<p>x<br>y<br/>z</p>',
	'  <div class="box">\n\n\n\n   <span>inline</span> text <p>para</p></div>',
	'</div></div><p>unbalanced</p><div><div>',
	'<div><pre class="code">  keep\n\n\n\n    this</pre></div>',
	'plain text without tags',
	'<DIV><P>Upper</P></DIV>',
	'<section id="s"><header><h2>T</h2></header><article><p>b</p></article></section>',
]


class PrettifyLayoutTest(SimpleTestCase):
	def test_sibling_blocks_on_separate_lines_at_base_indent(self):
		self.assertEqual(prettify_html('<p>a</p><p>b</p>'), '<p>a</p>\n<p>b</p>')
		self.assertEqual(prettify_html('<p>a</p><p>b</p>', base_indent='  '), '  <p>a</p>\n  <p>b</p>')

	def test_nested_blocks_are_indented(self):
		self.assertEqual(prettify_html('<div><p>a</p></div>'), '<div>\n    <p>a</p>\n</div>')

	def test_table_nesting(self):
		html = '<table><tr><td>1</td></tr></table>'
		expected = '<table>\n    <tr>\n        <td>1</td>\n    </tr>\n</table>'
		self.assertEqual(prettify_html(html), expected)

	def test_custom_indent_unit(self):
		self.assertEqual(prettify_html('<ul><li>a</li></ul>', indent_unit='\t'), '<ul>\n\t<li>a</li>\n</ul>')

	def test_open_and_close_on_one_line_keeps_depth(self):
		html = '<div class="a" data-x="1">text</div><p>after</p>'
		self.assertEqual(prettify_html(html), '<div class="a" data-x="1">text</div>\n<p>after</p>')

	def test_tag_matching_is_case_insensitive(self):
		self.assertEqual(prettify_html('<P>a</P><P>b</P>'), '<P>a</P>\n<P>b</P>')

	def test_line_break_tag_ends_a_line(self):
		self.assertEqual(prettify_html('one<br>two<br/>three'), 'one<br>\ntwo<br/>\nthree')

	def test_void_tag_does_not_increase_depth(self):
		html = '<div>\n<img src="a.png">\n<p>x</p></div>'
		expected = '<div>\n    <img src="a.png">\n    <p>x</p>\n</div>'
		self.assertEqual(prettify_html(html), expected)

	def test_inline_content_after_opening_tag_stays_on_its_line(self):
		self.assertEqual(prettify_html('<div><span>x</span></div>'), '<div><span>x</span></div>')
		self.assertEqual(prettify_html('<li>a<ul><li>b</li></ul></li>'), '<li>a\n<ul>\n    <li>b</li>\n</ul>\n</li>')

	def test_blank_line_runs_collapse_to_one(self):
		self.assertEqual(prettify_html('a\n\n\n\n\nb'), 'a\n\nb')
		self.assertNotIn('\n\n\n', prettify_html(SAMPLES[4]))

	def test_leading_and_trailing_blank_lines_removed(self):
		self.assertEqual(prettify_html('\n\n<p>a</p>\n\n'), '<p>a</p>')

	def test_unbalanced_input_never_goes_negative(self):
		self.assertEqual(prettify_html('</div></div><p>x</p>'), '</div>\n</div>\n<p>x</p>')

	def test_pre_content_is_untouched(self):
		html = '<div><pre>  line1\n\n\n\n    line2</pre></div>'
		expected = '<div>\n    <pre>  line1\n\n\n\n    line2</pre>\n</div>'
		self.assertEqual(prettify_html(html), expected)

	def test_attributes_and_text_are_preserved(self):
		html = '<p class="x"  id=\'y\'>a  &amp;  b</p>'
		self.assertEqual(prettify_html(html), html)

	def test_control_and_private_use_characters_survive(self):
		html = '<p>a\x01b\x02c</p><p>\ue000\ue001\ue0020\ue002</p><pre>\ue001x</pre>'
		expected = '<p>a\x01b\x02c</p>\n<p>\ue000\ue001\ue0020\ue002</p>\n<pre>\ue001x</pre>'
		self.assertEqual(prettify_html(html), expected)

	def test_empty_input(self):
		self.assertEqual(prettify_html(''), '')
		self.assertEqual(prettify_html(None), '')


class PrettifyIdempotenceTest(SimpleTestCase):
	def test_formatting_twice_changes_nothing(self):
		for sample in SAMPLES:
			for indent in ('', '            '):
				with self.subTest(sample=sample, indent=indent):
					once = prettify_html(sample, base_indent=indent)
					self.assertEqual(prettify_html(once, base_indent=indent), once)

	def test_only_whitespace_changes(self):
		for sample in SAMPLES:
			with self.subTest(sample=sample):
				squeeze = lambda s: ''.join(s.split())
				self.assertEqual(squeeze(prettify_html(sample)), squeeze(sample))
