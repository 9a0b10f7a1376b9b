"""Church administration API: members, contributions and pledges."""
