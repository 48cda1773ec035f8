"""
Player name utilities.

ITSF profile pages print names as "Firstname LASTNAME", e.g.
"Jean-Pierre DE LA FONTAINE" or "Anna Maria MÜLLER". Words written fully in
capitals form the last name; the rest is the first name.
"""


def is_uppercase(word: str) -> bool:
    """True if the word has no lowercase characters ('DE', 'O'NEIL', 'MÜLLER')."""
    return not any(char.islower() for char in word)


def to_normalcase(word: str) -> str:
    """
    Keep the first character, lowercase the rest.

    Examples:
        >>> to_normalcase("MÜLLER")
        'Müller'
        >>> to_normalcase("DE")
        'De'
    """
    if not word:
        return word
    return word[0] + word[1:].lower()


def split_itsf_name(name: str) -> tuple[str, str]:
    """
    Split an ITSF display name into (first_name, last_name).

    Examples:
        >>> split_itsf_name("Max MUSTERMANN")
        ('Max', 'Mustermann')
        >>> split_itsf_name("Anna Maria VAN DER BERG")
        ('Anna Maria', 'Van Der Berg')
    """
    words = [word for word in name.split(" ") if word]
    last_name = " ".join(to_normalcase(word) for word in words if is_uppercase(word))
    first_name = " ".join(word for word in words if not is_uppercase(word))
    return first_name, last_name
