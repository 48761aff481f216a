"""
Embedded XSD documents for the sitemaps.org 0.9 protocol.
"""

from enum import Enum
from functools import lru_cache

from lxml import etree

SITEMAP_NAMESPACE = "http://www.sitemaps.org/schemas/sitemap/0.9"

URLSET_XSD = """<?xml version="1.0" encoding="UTF-8"?>
<xs:schema xmlns:xs="http://www.w3.org/2001/XMLSchema"
           xmlns="http://www.sitemaps.org/schemas/sitemap/0.9"
           targetNamespace="http://www.sitemaps.org/schemas/sitemap/0.9"
           elementFormDefault="qualified">
  <xs:element name="urlset">
    <xs:complexType>
      <xs:sequence>
        <xs:element name="url" maxOccurs="unbounded">
          <xs:complexType>
            <xs:sequence>
              <xs:element name="loc" type="xs:anyURI" />
              <xs:element name="lastmod" type="xs:date" minOccurs="0" />
              <xs:element name="changefreq" minOccurs="0">
                <xs:simpleType>
                  <xs:restriction base="xs:string">
                    <xs:enumeration value="always" />
                    <xs:enumeration value="hourly" />
                    <xs:enumeration value="daily" />
                    <xs:enumeration value="weekly" />
                    <xs:enumeration value="monthly" />
                    <xs:enumeration value="yearly" />
                    <xs:enumeration value="never" />
                  </xs:restriction>
                </xs:simpleType>
              </xs:element>
              <xs:element name="priority" minOccurs="0">
                <xs:simpleType>
                  <xs:restriction base="xs:decimal">
                    <xs:minInclusive value="0.0" />
                    <xs:maxInclusive value="1.0" />
                  </xs:restriction>
                </xs:simpleType>
              </xs:element>
            </xs:sequence>
          </xs:complexType>
        </xs:element>
      </xs:sequence>
    </xs:complexType>
  </xs:element>
</xs:schema>
"""

SITEMAPINDEX_XSD = """<?xml version="1.0" encoding="UTF-8"?>
<xs:schema xmlns:xs="http://www.w3.org/2001/XMLSchema"
           xmlns="http://www.sitemaps.org/schemas/sitemap/0.9"
           targetNamespace="http://www.sitemaps.org/schemas/sitemap/0.9"
           elementFormDefault="qualified">
  <xs:element name="sitemapindex">
    <xs:complexType>
      <xs:sequence>
        <xs:element name="sitemap" maxOccurs="unbounded">
          <xs:complexType>
            <xs:sequence>
              <xs:element name="loc" type="xs:anyURI" />
              <xs:element name="lastmod" type="xs:date" minOccurs="0" />
            </xs:sequence>
          </xs:complexType>
        </xs:element>
      </xs:sequence>
    </xs:complexType>
  </xs:element>
</xs:schema>
"""


class SchemaKind(str, Enum):
    URLSET = "urlset"
    SITEMAPINDEX = "sitemapindex"


_XSD_TEXT = {
    SchemaKind.URLSET: URLSET_XSD,
    SchemaKind.SITEMAPINDEX: SITEMAPINDEX_XSD,
}


@lru_cache(maxsize=None)
def load_schema(kind: SchemaKind) -> etree.XMLSchema:
    """Compile (once per process) the XSD for the given document kind."""
    schema_doc = etree.fromstring(_XSD_TEXT[SchemaKind(kind)].encode("utf-8"))
    return etree.XMLSchema(schema_doc)
