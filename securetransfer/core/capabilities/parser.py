"""
Parsing of service discovery payloads.

An upload-capable service answers disco#info with something like:

    <query xmlns="http://jabber.org/protocol/disco#info">
      <identity category="store" type="file" name="HTTP File Upload"/>
      <feature var="urn:xmpp:http:upload:0"/>
      <x type="result" xmlns="jabber:x:data">
        <field var="FORM_TYPE" type="hidden">
          <value>urn:xmpp:http:upload:0</value>
        </field>
        <field var="max-file-size"><value>5242880</value></field>
      </x>
    </query>
"""
from typing import Iterable, Iterator, Optional
from xml.etree import ElementTree
from xml.etree.ElementTree import Element

from ..logging import get_logger
from .models import Payload

DATA_FORMS_NAMESPACE = 'jabber:x:data'
MAX_FILE_SIZE_FIELD = 'max-file-size'

logger = get_logger('securetransfer.capabilities.parser')


def local_name(tag: str) -> str:
    """Tag without its '{namespace}' prefix."""
    return tag.rsplit('}', 1)[-1]


def namespace_of(tag: str) -> Optional[str]:
    """Namespace of a Clark-notation tag, None when unqualified."""
    if tag.startswith('{'):
        return tag[1:].split('}', 1)[0]
    return None


def _children(element: Element, name: str) -> Iterator[Element]:
    for child in element:
        if isinstance(child.tag, str) and local_name(child.tag) == name:
            yield child


def to_element(payload: Payload) -> Element:
    """
    Get an Element from a raw payload.
    
    Raises:
        ElementTree.ParseError: If the XML text is malformed
    """
    if isinstance(payload, Element):
        return payload
    return ElementTree.fromstring(payload)


def supports_http_upload(query: Element, namespaces: Iterable[str]) -> bool:
    """True if a <feature var=.../> child names one of the upload namespaces."""
    return advertised_upload_namespace(query, namespaces) is not None


def advertised_upload_namespace(query: Element, namespaces: Iterable[str]) -> Optional[str]:
    """
    First of `namespaces` advertised as a <feature var=.../>.
    
    Preference follows the order of `namespaces`, not the order of the
    features in the payload.
    """
    features = {feature.get('var') for feature in _children(query, 'feature')}
    for namespace in namespaces:
        if namespace in features:
            return namespace
    return None


def max_http_upload_size(query: Element, namespaces: Iterable[str]) -> int:
    """
    Maximum file size advertised in a matching data form.
    
    Only a form that also declares one of the upload namespaces counts.
    
    Returns:
        Size in bytes, or 0 if none is declared
    """
    accepted = set(namespaces)
    for form in _children(query, 'x'):
        if namespace_of(form.tag) != DATA_FORMS_NAMESPACE:
            continue
        
        correct_form = False
        max_size = 0
        for field in _children(form, 'field'):
            value = next(_children(field, 'value'), None)
            if value is None:
                continue
            text = (value.text or '').strip()
            if text in accepted:
                correct_form = True
            if field.get('var') == MAX_FILE_SIZE_FIELD:
                try:
                    max_size = int(text)
                except ValueError:
                    logger.warning(f"Ignoring non-numeric {MAX_FILE_SIZE_FIELD}: {text!r}")
                    max_size = 0
        
        if correct_form and max_size > 0:
            return max_size
    
    return 0
