from drf_spectacular.extensions import OpenApiAuthenticationExtension
from drf_spectacular.types import OpenApiTypes
from drf_spectacular.utils import OpenApiParameter, OpenApiResponse

ERROR_RESPONSE = OpenApiResponse(
    response=OpenApiTypes.OBJECT,
    description='Error body: {"error": "<message>"}',
)


def id_query_parameter(entity: str) -> OpenApiParameter:
    return OpenApiParameter("id", OpenApiTypes.UUID, OpenApiParameter.QUERY, required=True,
                            description=f"{entity} id")


class TenantAPIKeyScheme(OpenApiAuthenticationExtension):
    target_class = 'apps.core.auth.TenantAPIKeyAuthentication'
    name = 'TenantAPIKey'

    def get_security_definition(self, auto_schema):
        return {'type': 'apiKey', 'in': 'header', 'name': 'X-API-Key'}
