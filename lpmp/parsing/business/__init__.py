from lpmp.parsing.business.decode import BusinessDecoder, DecodeResult, Reading

__all__ = ["BusinessDecoder", "DecodeResult", "Reading"]
