# SPDX-FileCopyrightText: 2025 Frederic Ruget <fred@atlant.is> (GitHub: @douzebis)
#
# SPDX-License-Identifier: MIT

from cryptography.x509.oid import NameOID

# === POLICY DEFINITION ========================================================

POLICY_KEY = 'policy'
VALUE_KEY = 'value'

POLICY_REQUIRED = 'required'
POLICY_OPTIONAL = 'optional'
POLICY_MATCH = 'match'

# Section holding the subject item policy inside a certificate profile
DEFAULT_POLICY_SECTION = 'subject_item_policy'

ENV_POLICY = 'SUBJPOL_POLICY'
ENV_SECTION = 'SUBJPOL_SECTION'


# === X509 SUBJECT =============================================================

# Special characters that must be escaped if present in values
SPECIAL_CHARS = set(',=+<>#;"\\')

# OpenSSL short names <-> OIDs
SHORT_NAME_OIDS = {
    'CN': NameOID.COMMON_NAME,
    'O': NameOID.ORGANIZATION_NAME,
    'OU': NameOID.ORGANIZATIONAL_UNIT_NAME,
    'C': NameOID.COUNTRY_NAME,
    'L': NameOID.LOCALITY_NAME,
    'ST': NameOID.STATE_OR_PROVINCE_NAME,
    'street': NameOID.STREET_ADDRESS,
    'DC': NameOID.DOMAIN_COMPONENT,
    'UID': NameOID.USER_ID,
    'serialNumber': NameOID.SERIAL_NUMBER,
    'title': NameOID.TITLE,
    'GN': NameOID.GIVEN_NAME,
    'SN': NameOID.SURNAME,
    'postalCode': NameOID.POSTAL_CODE,
    'emailAddress': NameOID.EMAIL_ADDRESS,
}
OID_SHORT_NAMES = {oid: name for name, oid in SHORT_NAME_OIDS.items()}
