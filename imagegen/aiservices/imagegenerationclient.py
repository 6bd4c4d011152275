from __future__ import annotations

from abc import ABC, abstractmethod
from typing import List

from ..schemas import ImageDescriptor, ImageGenerationParams

# Define an abstract interface for image generation clients so different
# implementations (OpenAI, compatible gateways, test doubles) can be used
# interchangeably.


class ImageGenerationClient(ABC):
    """Abstract interface for an image generation client.

    Implementations must provide a synchronous generation method
    used by the rest of the application. Every failure has to surface as
    one of the exceptions in :mod:`.errors`.
    """

    @abstractmethod
    def generate(self, params: ImageGenerationParams) -> List[ImageDescriptor]:
        """Issue one generation call and return the image descriptors.

        Raises TransportError, UpstreamRejected or MalformedResponse.
        """
