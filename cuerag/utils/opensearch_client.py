"""
OpenSearch client wrapper for the personal cue index.
"""

from typing import Any, Dict, List, Optional

import boto3
from opensearchpy import OpenSearch, RequestsHttpConnection
from opensearchpy.exceptions import NotFoundError, OpenSearchException
from requests_aws4auth import AWS4Auth

from .config import OpenSearchConfig
from .logging_config import get_logger

logger = get_logger(__name__)

CUE_INDEX_BODY = {
    'mappings': {
        'properties': {
            'id': {
                'type': 'keyword'
            },
            'owner_id': {
                'type': 'keyword'
            },
            'key': {
                'type': 'keyword'
            },
            'type': {
                'type': 'keyword'
            },
            'category': {
                'type': 'keyword'
            },
            'payload': {
                'type': 'object',
                'enabled': False
            },
            'confidence': {
                'type': 'float'
            },
            'evidence_quality': {
                'type': 'keyword'
            },
            'first_observed': {
                'type': 'date'
            },
            'last_reinforced': {
                'type': 'date'
            }
        }
    }
}


class OpenSearchError(Exception):
    """Custom exception for OpenSearch errors."""
    pass


class OpenSearchClient:
    """OpenSearch client with AWS authentication and error handling."""

    def __init__(self, config: OpenSearchConfig, client: Optional[OpenSearch] = None):
        """
        Initialize OpenSearch client.

        Args:
            config: OpenSearchConfig instance with connection parameters
            client: Optional pre-built OpenSearch client
        """
        self.config = config
        self.index_name = config.index_name

        if client is not None:
            self.client = client
        else:
            # Get AWS credentials and create auth
            credentials = boto3.Session().get_credentials()
            auth = AWS4Auth(region=config.region, service='aoss', refreshable_credentials=credentials)
            endpoint = config.endpoint
            if '://' in endpoint:
                # Remove protocol if present
                endpoint = endpoint.split('://', 1)[1]

            self.client = OpenSearch(hosts=[{
                'host': endpoint,
                'port': config.port
            }],
                                     http_auth=auth,
                                     use_ssl=True,
                                     verify_certs=True,
                                     connection_class=RequestsHttpConnection)

        logger.info(f'Initialized OpenSearch client for endpoint: {config.endpoint}')

    def create_index_if_not_exists(self) -> str:
        """
        Create the cue index if it doesn't exist.

        Returns:
            'exists', 'created' or 'failed'
        """
        try:
            if self.client.indices.exists(index=self.index_name):
                logger.debug(f'Index {self.index_name} already exists')
                return 'exists'

            response = self.client.indices.create(index=self.index_name, body=CUE_INDEX_BODY)
            if response.get('acknowledged', False):
                logger.info(f'Created index {self.index_name}')
                return 'created'
            return 'failed'

        except OpenSearchException as e:
            logger.error(f'Error creating index {self.index_name}: {e}')
            raise OpenSearchError(f'Failed to create index: {e}')
        except Exception as e:
            logger.error(f'Unexpected error creating index {self.index_name}: {e}')
            raise OpenSearchError(f'Unexpected error creating index: {e}')

    def index_document(self, doc_id: str, document: Dict[str, Any]) -> bool:
        """
        Index (create or replace) a document under a fixed id.

        Args:
            doc_id: Document id
            document: Document to index

        Returns:
            True if indexing was successful, False otherwise
        """
        try:
            response = self.client.index(index=self.index_name, id=doc_id, body=document)

            success = response.get('result') in ['created', 'updated']
            if success:
                logger.debug(f'Indexed document {doc_id} in {self.index_name}')
            else:
                logger.warning(f'Unexpected result indexing document: {response}')

            return success

        except OpenSearchException as e:
            logger.error(f'Error indexing document: {e}')
            raise OpenSearchError(f'Failed to index document: {e}')
        except Exception as e:
            logger.error(f'Unexpected error indexing document: {e}')
            raise OpenSearchError(f'Unexpected error indexing document: {e}')

    def get_document(self, doc_id: str) -> Optional[Dict[str, Any]]:
        """
        Get a document by id.

        Args:
            doc_id: Document id

        Returns:
            Document source if found, None otherwise
        """
        try:
            response = self.client.get(index=self.index_name, id=doc_id)
            if response.get('found'):
                return response['_source']
            return None

        except NotFoundError:
            return None
        except OpenSearchException as e:
            logger.error(f'Error getting document {doc_id}: {e}')
            raise OpenSearchError(f'Failed to get document: {e}')
        except Exception as e:
            logger.error(f'Unexpected error getting document {doc_id}: {e}')
            raise OpenSearchError(f'Unexpected error getting document: {e}')

    def search_by_owner(self, owner_id: str, size: int = 100) -> List[Dict[str, Any]]:
        """
        List an owner's documents, most recently reinforced first.

        Args:
            owner_id: Owner to filter on
            size: Maximum number of documents

        Returns:
            List of document sources
        """
        try:
            search_body = {
                'size': size,
                'query': {
                    'bool': {
                        'filter': [{
                            'term': {
                                'owner_id': owner_id
                            }
                        }]
                    }
                },
                'sort': [{
                    'last_reinforced': {
                        'order': 'desc'
                    }
                }]
            }

            response = self.client.search(index=self.index_name, body=search_body)
            documents = [hit['_source'] for hit in response['hits']['hits']]

            logger.debug(f'Owner search returned {len(documents)} documents for {owner_id}')
            return documents

        except OpenSearchException as e:
            logger.error(f'Error searching documents for {owner_id}: {e}')
            raise OpenSearchError(f'Owner search failed: {e}')
        except Exception as e:
            logger.error(f'Unexpected error searching documents for {owner_id}: {e}')
            raise OpenSearchError(f'Unexpected error in owner search: {e}')

    def health_check(self) -> bool:
        """
        Perform a health check on the OpenSearch service.

        Returns:
            True if service is healthy, False otherwise
        """
        try:
            response = self.client.indices.exists(index=self.index_name)
            return response in [True, False]

        except Exception as e:
            logger.error(f'OpenSearch health check failed: {e}')
            return False
