"""
Recipient signals.

auth_token_issued is sent after a magic-link token has been stored and
committed. The email collaborator connects to it to send the link;
this app never sends email itself.

Usage:
    from django.dispatch import receiver
    from recipients.signals import auth_token_issued

    @receiver(auth_token_issued)
    def send_magic_link(sender, recipient, token, **kwargs):
        ...
"""

from django.dispatch import Signal

# Sent with: recipient, token
auth_token_issued = Signal()
