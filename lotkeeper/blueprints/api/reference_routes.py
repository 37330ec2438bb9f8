from flask import Blueprint

from ...services.reference_data import ReferenceDataService
from ...utils.api_responses import APIResponse

reference_api_bp = Blueprint('reference_api', __name__)

# URL segment -> reference kind
COLLECTIONS = {
    'departments': 'department',
    'suppliers': 'supplier',
    'locations': 'location',
}
_COLLECTION_PATTERN = '<any(departments, suppliers, locations):collection>'


@reference_api_bp.route(f'/{_COLLECTION_PATTERN}', methods=['GET'])
def list_references(collection):
    records = ReferenceDataService.list(COLLECTIONS[collection])
    return APIResponse.success([record.to_dict() for record in records])


@reference_api_bp.route(f'/{_COLLECTION_PATTERN}', methods=['POST'])
def create_reference(collection):
    kind = COLLECTIONS[collection]
    record = ReferenceDataService.create(kind, APIResponse.handle_request_content())
    return APIResponse.success(record.to_dict(), f'{kind.capitalize()} created', 201)


@reference_api_bp.route(f'/{_COLLECTION_PATTERN}/<int:ref_id>', methods=['GET'])
def get_reference(collection, ref_id):
    return APIResponse.success(ReferenceDataService.get(COLLECTIONS[collection], ref_id).to_dict())


@reference_api_bp.route(f'/{_COLLECTION_PATTERN}/<int:ref_id>', methods=['PUT', 'PATCH'])
def update_reference(collection, ref_id):
    kind = COLLECTIONS[collection]
    record = ReferenceDataService.update(kind, ref_id, APIResponse.handle_request_content())
    return APIResponse.success(record.to_dict(), f'{kind.capitalize()} updated')


@reference_api_bp.route(f'/{_COLLECTION_PATTERN}/<int:ref_id>', methods=['DELETE'])
def delete_reference(collection, ref_id):
    kind = COLLECTIONS[collection]
    ReferenceDataService.delete(kind, ref_id)
    return APIResponse.success(None, f'{kind.capitalize()} deleted')
