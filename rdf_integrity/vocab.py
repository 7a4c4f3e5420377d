"""RDF terms used in proof graphs."""

from rdflib import URIRef
from rdflib.namespace import RDF, XSD, Namespace

SEC = Namespace("https://w3id.org/security#")

RDF_TYPE = RDF.type
RDF_JSON = URIRef("http://www.w3.org/1999/02/22-rdf-syntax-ns#JSON")
XSD_DATETIME = XSD.dateTime

PROOF = SEC.proof
DATA_INTEGRITY_PROOF = SEC.DataIntegrityProof
CRYPTOSUITE = SEC.cryptosuite
CREATED = SEC.created
EXPIRES = SEC.expires
REVOKED = SEC.revoked
VERIFICATION_METHOD = SEC.verificationMethod
PROOF_VALUE = SEC.proofValue
PROOF_PURPOSE = SEC.proofPurpose
PREVIOUS_PROOF = SEC.previousProof
CONTROLLER = SEC.controller

AUTHENTICATION_METHOD = SEC.authenticationMethod
ASSERTION_METHOD = SEC.assertionMethod

MULTIKEY = SEC.Multikey
JSON_WEB_KEY = SEC.JsonWebKey
PUBLIC_KEY_JWK = SEC.publicKeyJwk
PUBLIC_KEY_MULTIBASE = SEC.publicKeyMultibase

PROOF_PURPOSES = frozenset({AUTHENTICATION_METHOD, ASSERTION_METHOD})
