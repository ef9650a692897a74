"""
Unit tests for openapi_partitioner.overview module.
"""

import unittest

from openapi_partitioner.overview import generate_llms_txt


class TestGenerateLlmsTxt(unittest.TestCase):
    """Test cases for llms.txt rendering."""

    def setUp(self):
        self.spec = {
            'openapi': '3.0.0',
            'info': {
                'title': 'Pet Store',
                'description': 'Manage pets.',
                'version': '1.2.0',
                'contact': {'name': 'API Team', 'email': 'api@example.com', 'url': 'https://example.com'},
                'license': {'name': 'MIT', 'url': 'https://opensource.org/licenses/MIT'}
            },
            'servers': [{'url': 'https://pets.example.com/v1'}, {'url': 'https://staging.example.com'}],
            'paths': {
                '/pets': {
                    'get': {'operationId': 'listPets', 'summary': 'List pets'},
                    'post': {'summary': 'Create a pet'}
                },
                '/pets/{id}': {
                    'delete': {}
                }
            }
        }

    def test_full_overview(self):
        content = generate_llms_txt(self.spec)

        self.assertEqual(content, (
            "# Pet Store\n\n"
            "Manage pets.\n\n"
            "**Version:** 1.2.0\n\n"
            "**Contact:** API Team <api@example.com> (https://example.com)\n\n"
            "**License:** MIT (https://opensource.org/licenses/MIT)\n\n"
            "**Base URL:** https://pets.example.com/v1\n\n"
            "## Operations\n\n"
            "- **GET /pets** - List pets ([details](operations/listPets.yaml))\n"
            "- **POST /pets** - Create a pet ([details](operations/pets_post.yaml))\n"
            "- **DELETE /pets/{id}** - DELETE /pets/{id} ([details](operations/pets__id__delete.yaml))\n"
        ))

    def test_empty_operation_is_listed(self):
        content = generate_llms_txt(self.spec)

        self.assertIn("- **DELETE /pets/{id}**", content)

    def test_null_operation_is_not_listed(self):
        self.spec['paths']['/pets/{id}']['delete'] = None

        content = generate_llms_txt(self.spec)

        self.assertNotIn('DELETE', content)

    def test_summary_fallback(self):
        self.spec['paths']['/pets/{id}']['delete'] = {'description': 'Remove a pet'}

        content = generate_llms_txt(self.spec)

        self.assertIn(
            "- **DELETE /pets/{id}** - DELETE /pets/{id} ([details](operations/pets__id__delete.yaml))\n",
            content
        )

    def test_minimal_document(self):
        content = generate_llms_txt({'openapi': '3.0.0'})

        self.assertEqual(content, "# API\n\n## Operations\n\n")

    def test_partial_contact_and_license(self):
        spec = {
            'info': {
                'title': 'T',
                'contact': {'email': 'a@b.c'},
                'license': {'name': 'Apache-2.0'}
            }
        }

        content = generate_llms_txt(spec)

        self.assertIn("**Contact:** <a@b.c>\n\n", content)
        self.assertIn("**License:** Apache-2.0\n\n", content)

    def test_link_extension(self):
        content = generate_llms_txt(self.spec, extension='json')

        self.assertIn("(operations/listPets.json)", content)


if __name__ == '__main__':
    unittest.main()
